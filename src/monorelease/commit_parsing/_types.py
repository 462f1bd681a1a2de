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

"""Pure types for commit message parsing.

This module has **zero** runtime dependencies beyond the standard library.
Everything here is a frozen dataclass, enum, or protocol: no I/O, no
logging, no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

# Token produced for breaking commits, regardless of their type.
BREAKING_CHANGE = 'BREAKING CHANGE'


class ReleaseSeverity(Enum):
    """How large a version bump a commit (or batch of commits) warrants.

    Ordering comes from :data:`SEVERITY_ORDER`, never from the member
    values, so ``NONE < PATCH < MINOR < MAJOR`` holds however the members
    are declared. ``NONE`` is the identity of :func:`max_severity`.
    """

    MAJOR = 'major'
    MINOR = 'minor'
    PATCH = 'patch'
    NONE = 'none'

    @property
    def rank(self) -> int:
        """Position in :data:`SEVERITY_ORDER` (0 for ``NONE``)."""
        return SEVERITY_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ReleaseSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ReleaseSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ReleaseSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ReleaseSeverity):
            return NotImplemented
        return self.rank >= other.rank


# Lowest to highest.
SEVERITY_ORDER: tuple[ReleaseSeverity, ...] = (
    ReleaseSeverity.NONE,
    ReleaseSeverity.PATCH,
    ReleaseSeverity.MINOR,
    ReleaseSeverity.MAJOR,
)


def max_severity(a: ReleaseSeverity, b: ReleaseSeverity) -> ReleaseSeverity:
    """Return the higher of two severities.

    >>> max_severity(ReleaseSeverity.MINOR, ReleaseSeverity.PATCH)
    <ReleaseSeverity.MINOR: 'minor'>
    >>> max_severity(ReleaseSeverity.NONE, ReleaseSeverity.MAJOR)
    <ReleaseSeverity.MAJOR: 'major'>
    """
    return a if a >= b else b


@dataclass(frozen=True)
class ParsedCommit:
    """A parsed commit message.

    Attributes:
        sha: The full commit SHA.
        type: The lower-cased commit type (e.g. ``"feat"``), or ``""``
            when the message does not follow the convention.
        description: The commit subject after the ``type(scope):`` prefix.
        scope: The optional scope (e.g. ``"auth"``).
        breaking: Whether this is a breaking change (``!`` marker or a
            ``BREAKING CHANGE:`` footer).
        raw: The original unparsed commit message.
    """

    sha: str
    type: str
    description: str
    scope: str = ''
    breaking: bool = False
    raw: str = ''

    @property
    def release_types(self) -> tuple[str, ...]:
        """The tokens fed to the classifier.

        A breaking commit yields its own type plus ``"BREAKING CHANGE"``,
        so it classifies at least as high as a non-breaking commit of
        the same type whatever the rule table lists.
        """
        if self.breaking:
            return (self.type, BREAKING_CHANGE)
        return (self.type,)


@runtime_checkable
class CommitParser(Protocol):
    """Protocol for commit message parsers.

    A parser must never raise on bad input: messages it cannot make
    sense of come back with ``type == ""``, which every rule table
    classifies as ``NONE``.
    """

    def parse(self, message: str, sha: str = '') -> ParsedCommit:
        """Parse a full commit message (subject, body and footers)."""
        ...
