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

"""Configuration scaffolding for ``monorelease init``.

Finds every sub-project that carries a manifest and writes a starter
``monorelease.toml``. Safe to run again: an existing file is left alone
unless ``--force`` is given.

:func:`init_config` refuses to run outside a git work tree.

Architecture::

    discover_projects()           current branch
         │                              │
         ▼                              ▼
    outermost dirs holding        main_branch = "<branch>"
    pyproject.toml/package.json         │
         │                              │
         └──────────────┬───────────────┘
                        ▼
               generate_config_toml()
                        │
                        ▼
         write monorelease.toml (unless dry-run)
"""

from __future__ import annotations

import sys
from pathlib import Path

import tomlkit
from rich.console import Console
from rich.syntax import Syntax

from monorelease.backends.vcs import VCS
from monorelease.config import CONFIG_FILENAME, DEFAULT_COMMIT_MESSAGE
from monorelease.errors import E, ReleaseError
from monorelease.logging import get_logger
from monorelease.manifest import MANIFEST_FILENAMES

logger = get_logger(__name__)

# Directories never searched for projects.
SKIP_DIRS: frozenset[str] = frozenset({
    '.git',
    '.venv',
    '__pycache__',
    'build',
    'dist',
    'node_modules',
    'venv',
})

# Top-level directory names proposed as common paths when present.
_COMMON_CANDIDATES: tuple[str, ...] = ('common', 'shared')


def _is_project_dir(path: Path) -> bool:
    return any((path / name).is_file() for name in MANIFEST_FILENAMES)


def discover_projects(root: Path) -> list[str]:
    """Return root-relative paths of directories that hold a manifest.

    The repository root itself is never a project. Only the outermost
    manifest on any path counts, so the result is always disjoint.

    Args:
        root: Repository root.

    Returns:
        POSIX paths sorted alphabetically, e.g. ``["api", "web"]``.
    """
    found: list[str] = []
    pending = [root]
    while pending:
        current = pending.pop()
        try:
            children = sorted(p for p in current.iterdir() if p.is_dir())
        except OSError as exc:
            logger.warning('init_skip_unreadable', path=str(current), error=str(exc))
            continue
        for child in children:
            if child.name in SKIP_DIRS or child.name.startswith('.'):
                continue
            if _is_project_dir(child):
                found.append(child.relative_to(root).as_posix())
            else:
                pending.append(child)
    return sorted(found)


def detect_common(root: Path, projects: list[str]) -> list[str]:
    """Return conventional shared directories that are not projects."""
    return [
        name
        for name in _COMMON_CANDIDATES
        if (root / name).is_dir() and name not in projects and not _is_project_dir(root / name)
    ]


def generate_config_toml(
    projects: list[str],
    *,
    main_branch: str = 'main',
    common: list[str] | None = None,
) -> str:
    """Generate the text of a ``monorelease.toml``.

    Args:
        projects: Root-relative project paths.
        main_branch: Branch releases are cut from.
        common: Shared paths whose commits count for every project.

    Returns:
        TOML text.
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment('monorelease configuration; see `monorelease --help`.'))
    doc.add('main_branch', tomlkit.item(main_branch))

    project_array = tomlkit.array()
    project_array.extend(projects)
    project_array.multiline(len(projects) > 1)
    doc.add('projects', project_array)

    doc.add('common', tomlkit.item(common or []))
    doc.add('changelog', tomlkit.item(True))
    doc.add('commit_message', tomlkit.item(DEFAULT_COMMIT_MESSAGE))
    return tomlkit.dumps(doc)


def scaffold_config(
    root: Path,
    *,
    main_branch: str = 'main',
    dry_run: bool = False,
    force: bool = False,
) -> str:
    """Scaffold ``monorelease.toml`` at ``root``.

    Args:
        root: Repository root.
        main_branch: Value for ``main_branch``, usually the current branch.
        dry_run: Return the content without writing it.
        force: Overwrite an existing configuration.

    Returns:
        The generated TOML, or ``""`` when a configuration already
        exists and ``force`` is not set.

    Raises:
        ReleaseError: ``MR-CONFIG-MISSING-REQUIRED`` when no project is
            found, ``MR-REPO-OPERATION-FAILED`` when the file cannot be
            written.
    """
    config_path = root / CONFIG_FILENAME
    if config_path.exists() and not force:
        logger.info('init_config_exists', path=str(config_path))
        return ''

    projects = discover_projects(root)
    if not projects:
        raise ReleaseError(
            code=E.CONFIG_MISSING_REQUIRED,
            message=f'No sub-project with {" or ".join(MANIFEST_FILENAMES)} found under {root}',
            hint='Run init from the repository root, or write monorelease.toml by hand.',
        )
    logger.info('init_discovered_projects', count=len(projects), projects=projects)

    content = generate_config_toml(projects, main_branch=main_branch, common=detect_common(root, projects))
    if dry_run:
        return content

    try:
        config_path.write_text(content, encoding='utf-8')
    except OSError as exc:
        raise ReleaseError(
            code=E.REPO_OPERATION_FAILED,
            message=f'Cannot write {config_path}: {exc}',
        ) from exc
    logger.info('init_config_written', path=str(config_path))
    return content


async def init_config(
    vcs: VCS,
    root: Path,
    *,
    dry_run: bool = False,
    force: bool = False,
) -> str:
    """Check the checkout, then :func:`scaffold_config` it.

    ``main_branch`` is taken from the branch checked out at ``root``,
    falling back to ``main`` on a detached HEAD.

    Raises:
        ReleaseError: ``MR-REPO-NOT-A-REPOSITORY`` when ``root`` is not
            a git work tree, ``MR-REPO-OPERATION-FAILED`` when git cannot
            be run, plus anything :func:`scaffold_config` raises.
    """
    try:
        in_repo = await vcs.is_repository()
        branch = await vcs.current_branch() if in_repo else ''
    except OSError as exc:
        raise ReleaseError(
            code=E.REPO_OPERATION_FAILED,
            message=f'Could not run git: {exc}',
            hint='Check that git is installed and on PATH.',
        ) from exc
    if not in_repo:
        raise ReleaseError(
            code=E.REPO_NOT_A_REPOSITORY,
            message=f'{root} is not inside a git repository',
            hint='Run monorelease init from the root of the monorepo checkout.',
        )
    return scaffold_config(root, main_branch=branch or 'main', dry_run=dry_run, force=force)


def print_scaffold_preview(toml_fragment: str) -> None:
    """Print the generated configuration, highlighted on a TTY."""
    if not toml_fragment:
        return

    if sys.stdout.isatty():
        console = Console()
        console.print(f'\n[bold]Generated {CONFIG_FILENAME}:[/bold]\n')
        console.print(Syntax(toml_fragment, 'toml', theme='monokai'))
        return

    print(toml_fragment)  # noqa: T201 - CLI output


__all__ = [
    'SKIP_DIRS',
    'detect_common',
    'discover_projects',
    'generate_config_toml',
    'init_config',
    'print_scaffold_preview',
    'scaffold_config',
]
