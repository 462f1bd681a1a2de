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

"""Commit message parsing and classification.

The :class:`CommitParser` protocol turns a raw message into a
:class:`ParsedCommit`; :func:`classify` and :func:`fold_severity` turn
its release tokens into a :class:`ReleaseSeverity` using a
:class:`PrefixRules` table.

Usage::

    from monorelease.commit_parsing import (
        PrefixRules,
        ReleaseSeverity,
        fold_severity,
        parse_conventional_commit,
    )

    cc = parse_conventional_commit('feat(auth): add OAuth2')
    assert fold_severity(cc.release_types, PrefixRules.default()) == ReleaseSeverity.MINOR
"""

from monorelease.commit_parsing._conventional import ConventionalCommitParser
from monorelease.commit_parsing._rules import PrefixRules, classify, fold_severity
from monorelease.commit_parsing._types import (
    BREAKING_CHANGE,
    SEVERITY_ORDER,
    CommitParser,
    ParsedCommit,
    ReleaseSeverity,
    max_severity,
)

# Module-level singleton for convenience.
_DEFAULT_PARSER = ConventionalCommitParser()


def parse_conventional_commit(message: str, sha: str = '') -> ParsedCommit:
    """Parse a commit message with the default Conventional Commits parser."""
    return _DEFAULT_PARSER.parse(message, sha=sha)


__all__ = [
    'BREAKING_CHANGE',
    'SEVERITY_ORDER',
    'CommitParser',
    'ConventionalCommitParser',
    'ParsedCommit',
    'PrefixRules',
    'ReleaseSeverity',
    'classify',
    'fold_severity',
    'max_severity',
    'parse_conventional_commit',
]
