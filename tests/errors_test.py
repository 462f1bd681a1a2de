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

"""Tests for monorelease.errors module."""

from __future__ import annotations

import dataclasses
import io

import pytest
from monorelease.errors import (
    ERRORS,
    E,
    ErrorCode,
    ErrorInfo,
    ErrorKind,
    ReleaseError,
    ReleaseWarning,
    explain,
    render_error,
    render_warning,
)


class TestErrorCode:
    """Tests for ErrorCode enum."""

    def test_all_codes_have_mr_prefix(self) -> None:
        """Every error code must start with 'MR-'."""
        for code in ErrorCode:
            assert code.value.startswith('MR-'), f'{code.name} does not start with MR-'

    def test_no_duplicate_values(self) -> None:
        """Error code values must be unique."""
        values = [c.value for c in ErrorCode]
        assert len(values) == len(set(values)), 'Duplicate error code values found'

    def test_e_alias(self) -> None:
        """E should be an alias for ErrorCode."""
        assert E is ErrorCode
        assert E.CONFIG_NOT_FOUND is ErrorCode.CONFIG_NOT_FOUND

    @pytest.mark.parametrize(
        ('code', 'kind'),
        [
            (E.CONFIG_NOT_FOUND, ErrorKind.CONFIGURATION),
            (E.CONFIG_OVERLAPPING_RULES, ErrorKind.CONFIGURATION),
            (E.VERSION_INVALID, ErrorKind.VERSION),
            (E.VERSION_NOT_FOUND, ErrorKind.VERSION),
            (E.HISTORY_TAG_MISSING, ErrorKind.HISTORY_INCONSISTENCY),
            (E.REPO_OPERATION_FAILED, ErrorKind.REPOSITORY_OPERATION),
            (E.REPO_TAG_EXISTS, ErrorKind.REPOSITORY_OPERATION),
        ],
    )
    def test_kind_from_code(self, code: ErrorCode, kind: ErrorKind) -> None:
        """Each code maps to the family named by its second segment."""
        assert code.kind is kind

    def test_every_code_has_a_kind(self) -> None:
        """The kind lookup is total over the enum."""
        for code in ErrorCode:
            assert isinstance(code.kind, ErrorKind)


class TestErrorInfo:
    """Tests for ErrorInfo dataclass."""

    def test_frozen(self) -> None:
        """ErrorInfo instances should be immutable."""
        info = ErrorInfo(code=E.CONFIG_NOT_FOUND, message='test')
        with pytest.raises(dataclasses.FrozenInstanceError):
            info.message = 'changed'  # type: ignore[misc]

    def test_default_hint(self) -> None:
        """Hint should default to empty string."""
        info = ErrorInfo(code=E.CONFIG_NOT_FOUND, message='test')
        assert info.hint == ''


class TestReleaseError:
    """Tests for ReleaseError exception."""

    def test_message_includes_code(self) -> None:
        """Exception message should include the code."""
        err = ReleaseError(code=E.CONFIG_NOT_FOUND, message='test message')
        assert 'MR-CONFIG-NOT-FOUND' in str(err)
        assert 'test message' in str(err)

    def test_properties(self) -> None:
        """Code, kind and hint are exposed as properties."""
        err = ReleaseError(code=E.REPO_TAG_EXISTS, message='dup', hint='delete it')
        assert err.code is E.REPO_TAG_EXISTS
        assert err.kind is ErrorKind.REPOSITORY_OPERATION
        assert err.hint == 'delete it'
        assert isinstance(err.info, ErrorInfo)

    def test_is_exception(self) -> None:
        """ReleaseError should be an Exception."""
        assert isinstance(ReleaseError(code=E.VERSION_INVALID, message='x'), Exception)


class TestReleaseWarning:
    """Tests for ReleaseWarning."""

    def test_is_user_warning(self) -> None:
        """ReleaseWarning should be a UserWarning subclass."""
        warn = ReleaseWarning(code=E.HISTORY_TAG_MISSING, message='no tag')
        assert isinstance(warn, UserWarning)
        assert warn.kind is ErrorKind.HISTORY_INCONSISTENCY

    def test_code_and_hint(self) -> None:
        """Warning should carry code and hint."""
        warn = ReleaseWarning(code=E.HISTORY_TAG_MISSING, message='no tag', hint='tag it')
        assert warn.code is E.HISTORY_TAG_MISSING
        assert warn.hint == 'tag it'


class TestErrorCatalog:
    """Tests for the ERRORS catalog."""

    def test_catalog_entries_have_messages(self) -> None:
        """Every catalog entry should have a non-empty message."""
        for code, info in ERRORS.items():
            assert info.message, f'{code.value} has empty message'

    def test_catalog_codes_match(self) -> None:
        """ErrorInfo.code should match the key in the ERRORS dict."""
        for code, info in ERRORS.items():
            assert info.code is code


class TestExplain:
    """Tests for the explain() function."""

    def test_known_code(self) -> None:
        """Explain should include the code, kind and hint."""
        result = explain('MR-CONFIG-NOT-FOUND')
        assert result is not None
        assert result.startswith('MR-CONFIG-NOT-FOUND (configuration)')
        assert 'monorelease init' in result

    def test_unknown_code(self) -> None:
        """Explain should return None for unknown codes."""
        assert explain('MR-NOPE') is None
        assert explain('INVALID') is None

    def test_code_without_catalog_entry(self) -> None:
        """Explain should return a fallback for valid codes not in the catalog."""
        missing = [c for c in ErrorCode if c not in ERRORS]
        if not missing:
            pytest.skip('every code has a catalog entry')
        result = explain(missing[0].value)
        assert result is not None
        assert 'No detailed explanation' in result


class TestRender:
    """Tests for render_error() and render_warning() on a non-TTY stream."""

    def test_render_error_plain(self) -> None:
        """Plain output has the code, message and hint lines."""
        out = io.StringIO()
        render_error(ReleaseError(E.CONFIG_NOT_FOUND, 'No monorelease.toml', hint='run init'), file=out)
        text = out.getvalue()
        assert 'error[MR-CONFIG-NOT-FOUND]: No monorelease.toml' in text
        assert '= hint: run init' in text

    def test_render_warning_without_hint(self) -> None:
        """A warning without a hint is a single line."""
        out = io.StringIO()
        render_warning(ReleaseWarning(E.HISTORY_TAG_MISSING, 'Tag api-1.0.0 not found'), file=out)
        assert out.getvalue().strip() == 'warning[MR-HISTORY-TAG-MISSING]: Tag api-1.0.0 not found'
