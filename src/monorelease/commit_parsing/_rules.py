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

"""Prefix rules and the commit-type classifier.

A :class:`PrefixRules` table maps each bumping severity to the commit-type
tokens that trigger it::

    major = ["BREAKING CHANGE"]
    minor = ["feat"]
    patch = ["fix", "perf", "chore"]

:func:`classify` looks a token up in MAJOR, then MINOR, then PATCH and
returns the first hit. :func:`fold_severity` reduces a batch of tokens to
its strongest severity.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import reduce

from monorelease.commit_parsing._types import BREAKING_CHANGE, ReleaseSeverity, max_severity
from monorelease.errors import E, ReleaseError

# Lookup order used by classify().
_CLASSIFY_ORDER: tuple[ReleaseSeverity, ...] = (
    ReleaseSeverity.MAJOR,
    ReleaseSeverity.MINOR,
    ReleaseSeverity.PATCH,
)


@dataclass(frozen=True)
class PrefixRules:
    """Commit-type tokens per bumping severity.

    Build instances through :meth:`from_mapping` (or :meth:`default`) so
    overlapping tokens are rejected.
    """

    major: frozenset[str] = frozenset({BREAKING_CHANGE})
    minor: frozenset[str] = frozenset({'feat'})
    patch: frozenset[str] = frozenset({'fix', 'perf', 'chore'})

    @classmethod
    def default(cls) -> PrefixRules:
        """Return the stock rule table."""
        return cls()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object]) -> PrefixRules:
        """Build and validate rules from a ``{severity: [tokens]}`` mapping.

        Severities missing from ``raw`` keep their default tokens.

        Raises:
            ReleaseError: ``MR-CONFIG-INVALID-VALUE`` for an unknown
                severity, a value that is not a list of strings, or
                ``MR-CONFIG-OVERLAPPING-RULES`` when one token is listed
                under more than one severity.
        """
        defaults = cls()
        tokens: dict[str, frozenset[str]] = {
            'major': defaults.major,
            'minor': defaults.minor,
            'patch': defaults.patch,
        }
        for key, values in raw.items():
            if key not in tokens:
                raise ReleaseError(
                    code=E.CONFIG_INVALID_VALUE,
                    message=f"Unknown severity '{key}' in [prefix_rules]",
                    hint='Valid severities are major, minor and patch.',
                )
            if isinstance(values, str):
                raise ReleaseError(
                    code=E.CONFIG_INVALID_VALUE,
                    message=f"prefix_rules.{key} must be a list of strings, got a single string",
                    hint=f'Example: {key} = ["{values}"]',
                )
            if not isinstance(values, (list, tuple, set, frozenset)):
                raise ReleaseError(
                    code=E.CONFIG_INVALID_VALUE,
                    message=f"prefix_rules.{key} must be a list of strings, got {type(values).__name__}: {values!r}",
                    hint=f'Example: {key} = ["feat"]',
                )
            items = list(values)
            for item in items:
                if not isinstance(item, str):
                    raise ReleaseError(
                        code=E.CONFIG_INVALID_VALUE,
                        message=f"prefix_rules.{key} items must be strings, got {type(item).__name__}: {item!r}",
                    )
            tokens[key] = frozenset(str(item) for item in items)

        owners: dict[str, str] = {}
        for severity, values in tokens.items():
            for token in sorted(values):
                if token in owners:
                    raise ReleaseError(
                        code=E.CONFIG_OVERLAPPING_RULES,
                        message=f"Commit type '{token}' is listed under both '{owners[token]}' and '{severity}'",
                        hint='List each commit type under exactly one severity in [prefix_rules].',
                    )
                owners[token] = severity

        return cls(major=tokens['major'], minor=tokens['minor'], patch=tokens['patch'])

    def tokens_for(self, severity: ReleaseSeverity) -> frozenset[str]:
        """Return the tokens that trigger ``severity``."""
        if severity is ReleaseSeverity.MAJOR:
            return self.major
        if severity is ReleaseSeverity.MINOR:
            return self.minor
        if severity is ReleaseSeverity.PATCH:
            return self.patch
        return frozenset()


def classify(commit_type: str, rules: PrefixRules) -> ReleaseSeverity:
    """Map a commit-type token to a severity.

    Total and pure: unknown or empty tokens give ``NONE``.

    >>> classify('feat', PrefixRules.default())
    <ReleaseSeverity.MINOR: 'minor'>
    >>> classify('docs', PrefixRules.default())
    <ReleaseSeverity.NONE: 'none'>
    """
    if not commit_type:
        return ReleaseSeverity.NONE
    for severity in _CLASSIFY_ORDER:
        if commit_type in rules.tokens_for(severity):
            return severity
    return ReleaseSeverity.NONE


def fold_severity(commit_types: Iterable[str], rules: PrefixRules) -> ReleaseSeverity:
    """Return the strongest severity in a batch; ``NONE`` for an empty batch."""
    return reduce(
        max_severity,
        (classify(commit_type, rules) for commit_type in commit_types),
        ReleaseSeverity.NONE,
    )
