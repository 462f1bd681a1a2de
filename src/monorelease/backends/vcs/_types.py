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

"""Value types returned by VCS backends."""

from __future__ import annotations

import re
from dataclasses import dataclass

_SHORTSTAT_PATTERN: re.Pattern[str] = re.compile(
    r'(?P<changed>\d+) files? changed'
    r'(?:, (?P<insertions>\d+) insertions?\(\+\))?'
    r'(?:, (?P<deletions>\d+) deletions?\(-\))?',
)


@dataclass(frozen=True)
class LogEntry:
    """One commit as returned by :meth:`VCS.log`.

    Attributes:
        hash: Full commit SHA.
        message: Full commit message (subject, body and footers).
    """

    hash: str
    message: str


@dataclass(frozen=True)
class DiffSummary:
    """Totals from ``git diff --shortstat``."""

    changed: int = 0
    insertions: int = 0
    deletions: int = 0

    @classmethod
    def parse(cls, shortstat: str) -> DiffSummary:
        """Parse a ``--shortstat`` line; empty output means no changes.

        >>> DiffSummary.parse(' 2 files changed, 5 insertions(+), 1 deletion(-)')
        DiffSummary(changed=2, insertions=5, deletions=1)
        """
        match = _SHORTSTAT_PATTERN.search(shortstat)
        if not match:
            return cls()
        return cls(
            changed=int(match.group('changed')),
            insertions=int(match.group('insertions') or 0),
            deletions=int(match.group('deletions') or 0),
        )


__all__ = [
    'DiffSummary',
    'LogEntry',
]
