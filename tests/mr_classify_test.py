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

"""Tests for commit classification and severity folding."""

from __future__ import annotations

import itertools

import pytest
from monorelease.commit_parsing import (
    BREAKING_CHANGE,
    SEVERITY_ORDER,
    PrefixRules,
    ReleaseSeverity,
    classify,
    fold_severity,
    max_severity,
    parse_conventional_commit,
)
from monorelease.errors import E, ReleaseError

DEFAULT = PrefixRules.default()


class TestSeverity:
    """Tests for ReleaseSeverity ordering."""

    def test_total_order(self) -> None:
        """NONE < PATCH < MINOR < MAJOR."""
        assert ReleaseSeverity.NONE < ReleaseSeverity.PATCH < ReleaseSeverity.MINOR < ReleaseSeverity.MAJOR
        assert sorted(SEVERITY_ORDER, reverse=True)[0] is ReleaseSeverity.MAJOR

    def test_max_severity(self) -> None:
        """max_severity returns the stronger operand."""
        assert max_severity(ReleaseSeverity.PATCH, ReleaseSeverity.MINOR) is ReleaseSeverity.MINOR
        assert max_severity(ReleaseSeverity.NONE, ReleaseSeverity.NONE) is ReleaseSeverity.NONE


class TestClassify:
    """Tests for classify() with the default rules."""

    @pytest.mark.parametrize(
        ('token', 'expected'),
        [
            (BREAKING_CHANGE, ReleaseSeverity.MAJOR),
            ('feat', ReleaseSeverity.MINOR),
            ('fix', ReleaseSeverity.PATCH),
            ('perf', ReleaseSeverity.PATCH),
            ('chore', ReleaseSeverity.PATCH),
            ('docs', ReleaseSeverity.NONE),
            ('', ReleaseSeverity.NONE),
        ],
    )
    def test_default_rules(self, token: str, expected: ReleaseSeverity) -> None:
        """The stock table maps tokens as documented."""
        assert classify(token, DEFAULT) is expected

    def test_custom_rules(self) -> None:
        """A custom table replaces only the severities it names."""
        rules = PrefixRules.from_mapping({'minor': ['feat', 'docs']})
        assert classify('docs', rules) is ReleaseSeverity.MINOR
        assert classify('fix', rules) is ReleaseSeverity.PATCH


class TestFoldSeverity:
    """Tests for fold_severity()."""

    def test_empty_is_none(self) -> None:
        """No commits means no release."""
        assert fold_severity([], DEFAULT) is ReleaseSeverity.NONE

    def test_strongest_wins(self) -> None:
        """The strongest classification of the batch wins."""
        assert fold_severity(['fix', 'feat', 'docs'], DEFAULT) is ReleaseSeverity.MINOR
        assert fold_severity(['fix', BREAKING_CHANGE], DEFAULT) is ReleaseSeverity.MAJOR

    def test_order_independent(self) -> None:
        """Every permutation of a batch folds to the same severity."""
        batch = ['chore', 'feat', '', 'fix', 'docs']
        results = {fold_severity(p, DEFAULT) for p in itertools.permutations(batch)}
        assert results == {ReleaseSeverity.MINOR}

    def test_breaking_never_below_its_type(self) -> None:
        """Without a major rule a breaking feat still counts as a feat."""
        rules = PrefixRules.from_mapping({'major': []})
        cc = parse_conventional_commit('feat!: drop py2')
        assert fold_severity(cc.release_types, rules) is ReleaseSeverity.MINOR
        assert fold_severity(cc.release_types, DEFAULT) is ReleaseSeverity.MAJOR

    def test_equals_max_of_classifications(self) -> None:
        """The fold equals the maximum of the individual classifications."""
        batch = ['fix', 'perf', 'test']
        assert fold_severity(batch, DEFAULT) is max(classify(t, DEFAULT) for t in batch)


class TestPrefixRules:
    """Tests for PrefixRules validation."""

    def test_overlap_rejected(self) -> None:
        """A token under two severities is a configuration error."""
        with pytest.raises(ReleaseError) as exc_info:
            PrefixRules.from_mapping({'minor': ['feat', 'fix']})
        assert exc_info.value.code is E.CONFIG_OVERLAPPING_RULES
        assert "'fix'" in str(exc_info.value)

    def test_unknown_severity(self) -> None:
        """Only major, minor and patch are accepted."""
        with pytest.raises(ReleaseError) as exc_info:
            PrefixRules.from_mapping({'huge': ['feat']})
        assert exc_info.value.code is E.CONFIG_INVALID_VALUE

    def test_string_instead_of_list(self) -> None:
        """A bare string is rejected instead of being split into characters."""
        with pytest.raises(ReleaseError) as exc_info:
            PrefixRules.from_mapping({'patch': 'fix'})
        assert exc_info.value.code is E.CONFIG_INVALID_VALUE

    def test_non_string_item(self) -> None:
        """Tokens must be strings."""
        with pytest.raises(ReleaseError):
            PrefixRules.from_mapping({'patch': ['fix', 3]})

    @pytest.mark.parametrize('value', [5, True, {'feat': 1}])
    def test_non_list_value(self, value: object) -> None:
        """A scalar or table is a configuration error, not a TypeError."""
        with pytest.raises(ReleaseError) as exc_info:
            PrefixRules.from_mapping({'minor': value})
        assert exc_info.value.code is E.CONFIG_INVALID_VALUE

    def test_tokens_for_none(self) -> None:
        """NONE has no tokens."""
        assert DEFAULT.tokens_for(ReleaseSeverity.NONE) == frozenset()
