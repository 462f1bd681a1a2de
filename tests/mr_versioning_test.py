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

"""Tests for semantic versions and next-version resolution."""

from __future__ import annotations

import pytest
from monorelease.commit_parsing import ReleaseSeverity
from monorelease.errors import E, ReleaseError
from monorelease.versioning import SemVer, resolve_next

_SAMPLE_VERSIONS = ['0.0.0', '0.1.9', '1.2.3', '1.9.9', '2.0.0-rc.1', '10.20.30+build.7']
_BUMPING = [ReleaseSeverity.PATCH, ReleaseSeverity.MINOR, ReleaseSeverity.MAJOR]


class TestParse:
    """Tests for SemVer.parse()."""

    def test_core(self) -> None:
        """MAJOR.MINOR.PATCH is split into integers."""
        v = SemVer.parse('1.2.3')
        assert (v.major, v.minor, v.patch) == (1, 2, 3)
        assert str(v) == '1.2.3'

    def test_prerelease_and_build(self) -> None:
        """Pre-release and build identifiers round-trip through str()."""
        v = SemVer.parse('1.0.0-alpha.1+sha.5114f85')
        assert v.prerelease == ('alpha', '1')
        assert v.build == ('sha', '5114f85')
        assert str(v) == '1.0.0-alpha.1+sha.5114f85'

    @pytest.mark.parametrize('text', ['1.2', 'v1.2.3', '01.2.3', '1.2.3.4', 'abc', '', '1.2.3-'])
    def test_invalid(self, text: str) -> None:
        """Anything outside SemVer 2.0.0 raises a version error."""
        with pytest.raises(ReleaseError) as exc_info:
            SemVer.parse(text)
        assert exc_info.value.code is E.VERSION_INVALID
        assert not SemVer.is_valid(text)


class TestOrdering:
    """Tests for SemVer precedence."""

    def test_core_order(self) -> None:
        """Numeric, not lexical, comparison."""
        assert SemVer.parse('1.9.0') < SemVer.parse('1.10.0')

    def test_prerelease_before_release(self) -> None:
        """A pre-release sorts before its release."""
        assert SemVer.parse('1.0.0-rc.1') < SemVer.parse('1.0.0')

    def test_prerelease_identifiers(self) -> None:
        """Numeric identifiers sort before alphanumeric ones."""
        ordered = ['1.0.0-alpha', '1.0.0-alpha.1', '1.0.0-alpha.beta', '1.0.0-beta.2', '1.0.0-beta.11', '1.0.0']
        parsed = [SemVer.parse(v) for v in ordered]
        assert sorted(reversed(parsed)) == parsed

    def test_build_ignored(self) -> None:
        """Build metadata does not affect equality."""
        assert SemVer.parse('1.0.0+a') == SemVer.parse('1.0.0+b')


class TestResolveNext:
    """Tests for resolve_next()."""

    @pytest.mark.parametrize(
        ('severity', 'expected'),
        [
            (ReleaseSeverity.MAJOR, '2.0.0'),
            (ReleaseSeverity.MINOR, '1.5.0'),
            (ReleaseSeverity.PATCH, '1.4.3'),
        ],
    )
    def test_bumps(self, severity: ReleaseSeverity, expected: str) -> None:
        """Each severity bumps its own field and resets the lower ones."""
        assert str(resolve_next('1.4.2', severity)) == expected

    def test_none(self) -> None:
        """NONE means no release."""
        assert resolve_next('1.4.2', ReleaseSeverity.NONE) is None

    def test_invalid_current_raises_even_for_none(self) -> None:
        """The current version is validated whatever the severity."""
        with pytest.raises(ReleaseError) as exc_info:
            resolve_next('latest', ReleaseSeverity.NONE)
        assert exc_info.value.code is E.VERSION_INVALID

    def test_prerelease_is_dropped(self) -> None:
        """Bumping a pre-release yields a plain release."""
        assert str(resolve_next('2.0.0-rc.1', ReleaseSeverity.PATCH)) == '2.0.1'

    def test_accepts_semver(self) -> None:
        """A parsed SemVer is accepted as-is."""
        assert resolve_next(SemVer(0, 1, 0), ReleaseSeverity.MINOR) == SemVer(0, 2, 0)

    @pytest.mark.parametrize('current', _SAMPLE_VERSIONS)
    @pytest.mark.parametrize('severity', _BUMPING)
    def test_strictly_increasing(self, current: str, severity: ReleaseSeverity) -> None:
        """Every bump yields a version strictly greater than the current one."""
        nxt = resolve_next(current, severity)
        assert nxt is not None
        assert nxt > SemVer.parse(current)

    @pytest.mark.parametrize('current', _SAMPLE_VERSIONS)
    def test_monotone_in_severity(self, current: str) -> None:
        """A stronger severity never yields a smaller version."""
        versions = [resolve_next(current, s) for s in _BUMPING]
        assert versions == sorted(versions)  # type: ignore[type-var]
