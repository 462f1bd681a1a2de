# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Semantic versions and next-version resolution.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ SemVer              │ A parsed ``MAJOR.MINOR.PATCH[-pre][+build]``. │
    │                     │ Sorts by SemVer 2.0.0 precedence, so          │
    │                     │ ``1.0.0-rc.1 < 1.0.0 < 1.0.1``.               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ resolve_next()      │ Current version + severity gives the next     │
    │                     │ version, or ``None`` when nothing warrants a  │
    │                     │ release.                                      │
    └─────────────────────┴────────────────────────────────────────────────┘

    Severity → next version (from 1.4.2)::

        MAJOR  →  2.0.0
        MINOR  →  1.5.0
        PATCH  →  1.4.3
        NONE   →  None

Usage::

    from monorelease.versioning import SemVer, resolve_next

    assert str(resolve_next('1.4.2', ReleaseSeverity.MINOR)) == '1.5.0'
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field

from monorelease.commit_parsing import ReleaseSeverity
from monorelease.errors import E, ReleaseError

# https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string
SEMVER_PATTERN: re.Pattern[str] = re.compile(
    r'^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)'
    r'(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?'
    r'(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$',
)


def _identifier_key(identifier: str) -> tuple[int, int, str]:
    """Sort key for one pre-release identifier: numbers before words."""
    if identifier.isdigit():
        return (0, int(identifier), '')
    return (1, 0, identifier)


@functools.total_ordering
@dataclass(frozen=True)
class SemVer:
    """A SemVer 2.0.0 version.

    Build metadata is kept for display but ignored for equality and
    ordering.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def parse(cls, text: str) -> SemVer:
        """Parse ``text`` or raise ``MR-VERSION-INVALID``."""
        match = SEMVER_PATTERN.match(text.strip()) if isinstance(text, str) else None
        if match is None:
            raise ReleaseError(
                code=E.VERSION_INVALID,
                message=f'Version {text!r} is not a valid semantic version',
                hint='Use a version string like "1.2.3" (MAJOR.MINOR.PATCH).',
            )
        prerelease = match.group('prerelease')
        build = match.group('build')
        return cls(
            major=int(match.group('major')),
            minor=int(match.group('minor')),
            patch=int(match.group('patch')),
            prerelease=tuple(prerelease.split('.')) if prerelease else (),
            build=tuple(build.split('.')) if build else (),
        )

    @classmethod
    def is_valid(cls, text: str) -> bool:
        """Return ``True`` if ``text`` parses as a semantic version."""
        return SEMVER_PATTERN.match(text.strip()) is not None

    def _precedence(self) -> tuple[int, int, int, tuple[object, ...]]:
        # A release sorts after every pre-release of the same core version.
        if not self.prerelease:
            pre: tuple[object, ...] = (1,)
        else:
            pre = (0, tuple(_identifier_key(p) for p in self.prerelease))
        return (self.major, self.minor, self.patch, pre)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __str__(self) -> str:
        text = f'{self.major}.{self.minor}.{self.patch}'
        if self.prerelease:
            text += '-' + '.'.join(self.prerelease)
        if self.build:
            text += '+' + '.'.join(self.build)
        return text

    def bump(self, severity: ReleaseSeverity) -> SemVer | None:
        """Return the next release for ``severity``; pre-release and build are dropped."""
        match severity:
            case ReleaseSeverity.MAJOR:
                return SemVer(self.major + 1, 0, 0)
            case ReleaseSeverity.MINOR:
                return SemVer(self.major, self.minor + 1, 0)
            case ReleaseSeverity.PATCH:
                return SemVer(self.major, self.minor, self.patch + 1)
            case ReleaseSeverity.NONE:
                return None
            case _:
                raise AssertionError(f'unexpected severity: {severity}')


def resolve_next(current: str | SemVer, severity: ReleaseSeverity) -> SemVer | None:
    """Compute the next version, or ``None`` when no release is warranted.

    ``current`` is validated even when ``severity`` is ``NONE``.

    Raises:
        ReleaseError: ``MR-VERSION-INVALID`` if ``current`` is not a
            semantic version.
    """
    version = current if isinstance(current, SemVer) else SemVer.parse(current)
    return version.bump(severity)


__all__ = [
    'SEMVER_PATTERN',
    'SemVer',
    'resolve_next',
]
