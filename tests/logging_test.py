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


"""Tests for monorelease.logging module."""

from __future__ import annotations

import logging

import pytest
from monorelease.logging import configure_logging, get_logger, level_for


class TestLevelFor:
    """Tests for level_for()."""

    @pytest.mark.parametrize(
        ('verbose', 'quiet', 'expected'),
        [
            (False, False, logging.INFO),
            (True, False, logging.DEBUG),
            (False, True, logging.WARNING),
            (True, True, logging.WARNING),
        ],
    )
    def test_flags(self, verbose: bool, quiet: bool, expected: int) -> None:
        """-q beats -v; neither means info."""
        assert level_for(verbose=verbose, quiet=quiet) == expected


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_default_level_is_info(self) -> None:
        """No flags leaves the root logger at INFO."""
        configure_logging()
        assert logging.root.level == logging.INFO

    def test_last_call_wins(self) -> None:
        """Reconfiguring replaces the level and keeps one handler."""
        configure_logging()
        configure_logging(verbose=True)
        assert logging.root.level == logging.DEBUG
        assert len(logging.root.handlers) == 1

    def test_json_renderer(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON mode writes one object per event to stderr."""
        configure_logging(json_log=True)
        get_logger('monorelease.test').warning('project_skipped', project='web')
        err = capsys.readouterr().err
        assert '"event": "project_skipped"' in err
        assert '"project": "web"' in err
        configure_logging(quiet=True)


class TestGetLogger:
    """Tests for get_logger()."""

    def test_quiet_drops_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Info events are filtered under -q; warnings still print."""
        configure_logging(quiet=True)
        log = get_logger('monorelease.test')
        log.info('release_started')
        log.warning('session_stash_not_restored', label='x')
        err = capsys.readouterr().err
        assert 'release_started' not in err
        assert 'session_stash_not_restored' in err
