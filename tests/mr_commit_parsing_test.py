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

"""Tests for the Conventional Commits parser."""

from __future__ import annotations

import pytest
from monorelease.commit_parsing import (
    BREAKING_CHANGE,
    CommitParser,
    ConventionalCommitParser,
    ParsedCommit,
    parse_conventional_commit,
)


class TestParseSubject:
    """Tests for subject-line parsing."""

    def test_simple(self) -> None:
        """Type and description are split on the colon."""
        cc = parse_conventional_commit('fix: handle empty input', sha='abc1234')
        assert cc.type == 'fix'
        assert cc.description == 'handle empty input'
        assert cc.sha == 'abc1234'
        assert cc.scope == ''
        assert cc.breaking is False

    def test_scope(self) -> None:
        """Scope in parentheses is extracted."""
        cc = parse_conventional_commit('feat(auth): add OAuth2')
        assert cc.type == 'feat'
        assert cc.scope == 'auth'
        assert cc.description == 'add OAuth2'

    def test_type_is_lower_cased(self) -> None:
        """Commit types are case-insensitive."""
        assert parse_conventional_commit('FEAT: shout').type == 'feat'

    def test_non_conventional(self) -> None:
        """Free-form messages get an empty type."""
        cc = parse_conventional_commit('Merge branch main into dev')
        assert cc.type == ''
        assert cc.description == 'Merge branch main into dev'
        assert cc.release_types == ('',)

    def test_empty_message(self) -> None:
        """An empty message does not raise."""
        cc = parse_conventional_commit('')
        assert cc.type == ''

    def test_body_ignored_for_type(self) -> None:
        """Only the first line decides the type."""
        cc = parse_conventional_commit('docs: readme\n\nfeat: not a subject')
        assert cc.type == 'docs'
        assert cc.raw == 'docs: readme\n\nfeat: not a subject'


class TestBreaking:
    """Tests for breaking-change detection."""

    def test_bang(self) -> None:
        """A ``!`` before the colon marks a breaking change."""
        cc = parse_conventional_commit('refactor(api)!: drop v1 endpoints')
        assert cc.breaking is True
        assert cc.type == 'refactor'
        assert cc.release_types == ('refactor', BREAKING_CHANGE)

    @pytest.mark.parametrize('footer', ['BREAKING CHANGE: config moved', 'BREAKING-CHANGE: config moved'])
    def test_footer(self, footer: str) -> None:
        """A breaking footer in the body marks a breaking change."""
        cc = parse_conventional_commit(f'fix: new config path\n\n{footer}')
        assert cc.breaking is True
        assert cc.release_types == ('fix', BREAKING_CHANGE)

    def test_footer_must_start_line(self) -> None:
        """The footer token mid-sentence does not count."""
        cc = parse_conventional_commit('fix: mention\n\nno BREAKING CHANGE: here')
        assert cc.breaking is False
        assert cc.release_types == ('fix',)


class TestProtocol:
    """Tests for the CommitParser protocol."""

    def test_conventional_satisfies_protocol(self) -> None:
        """The default parser is a CommitParser."""
        assert isinstance(ConventionalCommitParser(), CommitParser)

    def test_custom_parser(self) -> None:
        """Any object with a matching parse() is accepted."""

        class UpperParser:
            """Treats the first word as the type."""

            def parse(self, message: str, sha: str = '') -> ParsedCommit:
                """Parse."""
                word = message.split(' ', 1)[0].lower()
                return ParsedCommit(sha=sha, type=word, description=message)

        assert isinstance(UpperParser(), CommitParser)
        assert UpperParser().parse('Fix things').release_types == ('fix',)
