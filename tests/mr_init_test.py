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

"""Tests for monorelease.init module."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit
from monorelease.config import CONFIG_FILENAME, DEFAULT_COMMIT_MESSAGE, load_config
from monorelease.errors import E, ReleaseError
from monorelease.init import detect_common, discover_projects, generate_config_toml, init_config, scaffold_config

from tests._fakes import FakeVCS


def _make_monorepo(root: Path) -> None:
    """Create api (package.json), web (pyproject), a nested and an ignored project."""
    (root / 'api').mkdir()
    (root / 'api' / 'package.json').write_text('{"name": "api", "version": "1.0.0"}\n')
    (root / 'api' / 'examples' / 'demo').mkdir(parents=True)
    (root / 'api' / 'examples' / 'demo' / 'package.json').write_text('{"version": "0.0.1"}\n')
    (root / 'services' / 'web').mkdir(parents=True)
    (root / 'services' / 'web' / 'pyproject.toml').write_text('[project]\nname = "web"\nversion = "0.1.0"\n')
    (root / 'node_modules' / 'left-pad').mkdir(parents=True)
    (root / 'node_modules' / 'left-pad' / 'package.json').write_text('{"version": "1.3.0"}\n')
    (root / '.cache' / 'tool').mkdir(parents=True)
    (root / '.cache' / 'tool' / 'package.json').write_text('{"version": "9.9.9"}\n')
    (root / 'common').mkdir()
    (root / 'common' / 'util.js').write_text('')


class TestDiscoverProjects:
    """Tests for discover_projects()."""

    def test_finds_outermost_manifests(self, tmp_path: Path) -> None:
        """Nested, vendored and hidden manifests are not projects."""
        _make_monorepo(tmp_path)
        assert discover_projects(tmp_path) == ['api', 'services/web']

    def test_root_manifest_ignored(self, tmp_path: Path) -> None:
        """The repository root is never a project."""
        (tmp_path / 'package.json').write_text('{"version": "1.0.0"}\n')
        assert discover_projects(tmp_path) == []


class TestDetectCommon:
    """Tests for detect_common()."""

    def test_common_dir(self, tmp_path: Path) -> None:
        """A top-level common/ that is not a project is proposed."""
        _make_monorepo(tmp_path)
        assert detect_common(tmp_path, ['api', 'services/web']) == ['common']

    def test_project_named_shared_excluded(self, tmp_path: Path) -> None:
        """A directory that is itself a project is not common."""
        (tmp_path / 'shared').mkdir()
        (tmp_path / 'shared' / 'package.json').write_text('{"version": "1.0.0"}\n')
        assert detect_common(tmp_path, ['shared']) == []


class TestGenerateConfigToml:
    """Tests for generate_config_toml()."""

    def test_valid_toml(self) -> None:
        """Output parses and carries every key."""
        text = generate_config_toml(['api', 'web'], main_branch='trunk', common=['common'])
        doc = tomlkit.parse(text)
        assert doc['main_branch'] == 'trunk'
        assert list(doc['projects']) == ['api', 'web']
        assert list(doc['common']) == ['common']
        assert doc['changelog'] is True
        assert doc['commit_message'] == DEFAULT_COMMIT_MESSAGE

    def test_defaults(self) -> None:
        """Without options the branch is main and common is empty."""
        doc = tomlkit.parse(generate_config_toml(['api']))
        assert doc['main_branch'] == 'main'
        assert list(doc['common']) == []


class TestScaffoldConfig:
    """Tests for scaffold_config()."""

    def test_writes_loadable_config(self, tmp_path: Path) -> None:
        """The scaffolded file is accepted by load_config()."""
        _make_monorepo(tmp_path)
        content = scaffold_config(tmp_path)
        assert content
        assert (tmp_path / CONFIG_FILENAME).read_text(encoding='utf-8') == content
        config = load_config(tmp_path)
        assert config.projects == ['api', 'services/web']
        assert config.common == ['common']

    def test_existing_config_kept(self, tmp_path: Path) -> None:
        """An existing file is left alone without force."""
        _make_monorepo(tmp_path)
        (tmp_path / CONFIG_FILENAME).write_text('projects = ["api"]\n')
        assert scaffold_config(tmp_path) == ''
        assert (tmp_path / CONFIG_FILENAME).read_text() == 'projects = ["api"]\n'

    def test_force_overwrites(self, tmp_path: Path) -> None:
        """With force the file is regenerated."""
        _make_monorepo(tmp_path)
        (tmp_path / CONFIG_FILENAME).write_text('projects = ["api"]\n')
        content = scaffold_config(tmp_path, force=True)
        assert 'services/web' in (tmp_path / CONFIG_FILENAME).read_text()
        assert content

    def test_dry_run_writes_nothing(self, tmp_path: Path) -> None:
        """Dry run returns the content only."""
        _make_monorepo(tmp_path)
        content = scaffold_config(tmp_path, main_branch='develop', dry_run=True)
        assert 'main_branch = "develop"' in content
        assert not (tmp_path / CONFIG_FILENAME).exists()

    def test_no_projects(self, tmp_path: Path) -> None:
        """An empty repository cannot be scaffolded."""
        with pytest.raises(ReleaseError) as exc_info:
            scaffold_config(tmp_path)
        assert exc_info.value.code is E.CONFIG_MISSING_REQUIRED


class TestInitConfig:
    """Tests for init_config()."""

    @pytest.mark.asyncio
    async def test_uses_current_branch(self, tmp_path: Path) -> None:
        """main_branch is the branch checked out at init time."""
        _make_monorepo(tmp_path)
        content = await init_config(FakeVCS(branch='trunk'), tmp_path, dry_run=True)
        assert 'main_branch = "trunk"' in content

    @pytest.mark.asyncio
    async def test_detached_head_defaults_to_main(self, tmp_path: Path) -> None:
        """Without a branch the default is main."""
        _make_monorepo(tmp_path)
        content = await init_config(FakeVCS(branch=''), tmp_path, dry_run=True)
        assert 'main_branch = "main"' in content

    @pytest.mark.asyncio
    async def test_not_a_repository(self, tmp_path: Path) -> None:
        """Outside a git work tree nothing is written."""
        _make_monorepo(tmp_path)
        with pytest.raises(ReleaseError) as exc_info:
            await init_config(FakeVCS(is_repo=False), tmp_path)
        assert exc_info.value.code is E.REPO_NOT_A_REPOSITORY
        assert not (tmp_path / CONFIG_FILENAME).exists()

    @pytest.mark.asyncio
    async def test_git_cannot_be_started(self, tmp_path: Path) -> None:
        """An OSError from git is a repository-operation error."""
        _make_monorepo(tmp_path)
        vcs = FakeVCS(raise_on={'is_repository': FileNotFoundError('git')})
        with pytest.raises(ReleaseError) as exc_info:
            await init_config(vcs, tmp_path)
        assert exc_info.value.code is E.REPO_OPERATION_FAILED
        assert not (tmp_path / CONFIG_FILENAME).exists()
