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

"""Conventional Commits parser.

Pure implementation: depends only on ``re`` and :mod:`._types`.
No I/O, no logging, no side effects.
"""

from __future__ import annotations

import re

from monorelease.commit_parsing._types import ParsedCommit

# Regex for the subject line: type(scope)!: description
CC_PATTERN: re.Pattern[str] = re.compile(
    r'^(?P<type>[A-Za-z]+)'  # type (e.g. feat, fix, chore)
    r'(?:\((?P<scope>[^)]*)\))?'  # optional scope in parens
    r'(?P<breaking>!)?'  # optional breaking change indicator
    r':\s*'  # colon + space
    r'(?P<description>.+)$',  # description
)

# Footer token marking a breaking change, at the start of a line.
BREAKING_FOOTER_PATTERN: re.Pattern[str] = re.compile(
    r'^BREAKING[ -]CHANGE:',
    re.MULTILINE,
)


class ConventionalCommitParser:
    """Parser for `Conventional Commits <https://www.conventionalcommits.org/>`_.

    The first line is matched against ``type(scope)!: description``.
    The whole message is searched for a ``BREAKING CHANGE:`` (or
    ``BREAKING-CHANGE:``) footer.
    """

    def parse(self, message: str, sha: str = '') -> ParsedCommit:
        """Parse a commit message.

        Args:
            message: The full commit message.
            sha: The commit SHA (for reference).

        Returns:
            A :class:`ParsedCommit`. Messages that do not follow the
            convention get ``type=""`` and the subject as description.
        """
        stripped = message.strip()
        subject = stripped.split('\n', 1)[0].strip()

        match = CC_PATTERN.match(subject)
        if not match:
            return ParsedCommit(sha=sha, type='', description=subject, raw=message)

        breaking = bool(match.group('breaking')) or bool(BREAKING_FOOTER_PATTERN.search(stripped))
        return ParsedCommit(
            sha=sha,
            type=match.group('type').lower(),
            scope=(match.group('scope') or '').strip(),
            description=match.group('description').strip(),
            breaking=breaking,
            raw=message,
        )
