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

"""Configuration reader for monorelease.

Reads ``monorelease.toml`` from the repository root and returns a
validated :class:`ReleaseConfig`.

Validation Pipeline::

    monorelease.toml
    ┌──────────────────┐
    │ main_brnach = .. │  ← typo!
    └────────┬─────────┘
             │
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 1. Unknown key   │────→│ MR-CONFIG-INVALID-KEY:       │
    │    detection     │     │ hint: "Did you mean          │
    └────────┬─────────┘     │       'main_branch'?"        │
             │               └──────────────────────────────┘
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 2. Type check    │────→│ MR-CONFIG-INVALID-VALUE:     │
    │    each value    │     │ 'projects' must be list      │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 3. Value check   │────→│ MR-CONFIG-MISSING-REQUIRED / │
    │    (paths, rules)│     │ MR-CONFIG-OVERLAPPING-RULES  │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐
    │ ReleaseConfig()  │  ← frozen dataclass, ready to use
    └──────────────────┘

Supported keys in ``monorelease.toml``::

    main_branch    = "main"                     # branch releases are cut from
    projects       = ["api", "web"]             # required, root-relative paths
    common         = ["common"]                 # shared paths, count for every project
    changelog      = true                       # write <project>/CHANGELOG.md
    commit_message = "chore: created release"   # message of the release commit
    remote         = "origin"                   # remote used by --push

    [prefix_rules]
    major = ["BREAKING CHANGE"]
    minor = ["feat"]
    patch = ["fix", "perf", "chore"]
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import tomlkit
import tomlkit.exceptions

from monorelease.commit_parsing import PrefixRules
from monorelease.errors import E, ReleaseError
from monorelease.logging import get_logger

logger = get_logger(__name__)

# The config file name at the repository root.
CONFIG_FILENAME = 'monorelease.toml'

DEFAULT_COMMIT_MESSAGE = 'chore: created release'

VALID_KEYS: frozenset[str] = frozenset({
    'changelog',
    'commit_message',
    'common',
    'main_branch',
    'prefix_rules',
    'projects',
    'remote',
})

_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'changelog': bool,
    'commit_message': str,
    'common': list,
    'main_branch': str,
    'prefix_rules': dict,
    'projects': list,
    'remote': str,
}


@dataclass(frozen=True)
class ReleaseConfig:
    """Validated configuration for a monorelease run.

    Attributes:
        main_branch: Branch releases are expected to be cut from.
        projects: Root-relative project paths, in processing order.
            Each path is also the project name used in tags.
        common: Root-relative shared paths whose commits count for
            every project.
        changelog: Whether to write ``CHANGELOG.md`` per project.
        commit_message: Message of the single release commit.
        remote: Remote that ``--push`` pushes to.
        prefix_rules: Commit-type to severity table.
        config_path: Path to the monorelease.toml that was loaded.
    """

    main_branch: str = 'main'
    projects: list[str] = field(default_factory=list)
    common: list[str] = field(default_factory=list)
    changelog: bool = True
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    remote: str = 'origin'
    prefix_rules: PrefixRules = field(default_factory=PrefixRules.default)
    config_path: Path | None = None


def _suggest_key(unknown: str) -> str | None:
    """Return the closest valid key for a typo, or None."""
    matches = difflib.get_close_matches(unknown, VALID_KEYS, n=1, cutoff=0.6)
    return matches[0] if matches else None


def _validate_value_type(key: str, value: Any) -> None:  # noqa: ANN401 - dynamic config values
    """Raise if a config value has the wrong type."""
    expected = _TYPE_MAP.get(key)
    if expected is None:
        return
    if not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else str(expected)
        raise ReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
        )


def _normalize_path(key: str, item: object) -> str:
    """Return a clean root-relative POSIX path, or raise."""
    if not isinstance(item, str):
        raise ReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' items must be strings, got {type(item).__name__}: {item!r}",
            hint=f'Each {key} entry should be a path relative to the repository root.',
        )
    path = PurePosixPath(str(item).strip())
    if path.is_absolute() or '..' in path.parts or str(path) in ('', '.'):
        raise ReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' entry {item!r} is not a path inside the repository",
            hint='Use paths relative to the repository root, e.g. "packages/api".',
        )
    return str(path)


def _validate_disjoint(projects: list[str]) -> None:
    """Raise if two projects are the same path or one contains the other."""
    for i, first in enumerate(projects):
        for second in projects[i + 1 :]:
            a, b = PurePosixPath(first), PurePosixPath(second)
            if a == b:
                raise ReleaseError(
                    code=E.CONFIG_INVALID_VALUE,
                    message=f"Project '{first}' is listed more than once",
                    hint='Each project path must appear once in projects.',
                )
            if a in b.parents or b in a.parents:
                raise ReleaseError(
                    code=E.CONFIG_INVALID_VALUE,
                    message=f"Projects '{first}' and '{second}' overlap; one contains the other",
                    hint='Project paths must be disjoint so each file belongs to one project.',
                )


def load_config(root: Path) -> ReleaseConfig:
    """Load and validate ``monorelease.toml`` from ``root``.

    Args:
        root: Repository root containing ``monorelease.toml``.

    Returns:
        A validated :class:`ReleaseConfig`.

    Raises:
        ReleaseError: A ``MR-CONFIG-*`` error if the file is missing,
            unreadable, or invalid.
    """
    config_path = root / CONFIG_FILENAME

    if not config_path.is_file():
        raise ReleaseError(
            code=E.CONFIG_NOT_FOUND,
            message=f'No {CONFIG_FILENAME} found in {root}',
            hint="Run 'monorelease init' to generate a default configuration.",
        )

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise ReleaseError(
            code=E.CONFIG_NOT_FOUND,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise ReleaseError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to parse {config_path}: {exc}',
            hint=f'Check that {CONFIG_FILENAME} is valid TOML.',
        ) from exc

    raw: dict[str, Any] = doc.unwrap()  # noqa: ANN401

    for key in raw:
        if key not in VALID_KEYS:
            suggestion = _suggest_key(key)
            if suggestion:
                hint = f"Did you mean '{suggestion}'?"
            else:
                hint = f'Valid keys: {", ".join(sorted(VALID_KEYS))}.'
            raise ReleaseError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {CONFIG_FILENAME}",
                hint=hint,
            )

    for key, value in raw.items():
        _validate_value_type(key, value)

    projects = [_normalize_path('projects', item) for item in raw.get('projects', [])]
    if not projects:
        raise ReleaseError(
            code=E.CONFIG_MISSING_REQUIRED,
            message=f"Missing or empty 'projects' in {config_path}",
            hint='Add projects = ["path/to/project", ...] or re-run monorelease init --force.',
        )
    _validate_disjoint(projects)

    common = [_normalize_path('common', item) for item in raw.get('common', [])]

    for key in ('main_branch', 'commit_message', 'remote'):
        if key in raw and not raw[key].strip():
            raise ReleaseError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{key}' must not be empty",
                hint=f'Remove {key} to use the default, or set a value.',
            )

    prefix_rules = PrefixRules.from_mapping(raw['prefix_rules']) if 'prefix_rules' in raw else PrefixRules.default()

    config = ReleaseConfig(
        main_branch=raw.get('main_branch', 'main'),
        projects=projects,
        common=common,
        changelog=raw.get('changelog', True),
        commit_message=raw.get('commit_message', DEFAULT_COMMIT_MESSAGE),
        remote=raw.get('remote', 'origin'),
        prefix_rules=prefix_rules,
        config_path=config_path,
    )
    logger.debug('config_loaded', path=str(config_path), projects=len(projects), common=len(common))
    return config


__all__ = [
    'CONFIG_FILENAME',
    'DEFAULT_COMMIT_MESSAGE',
    'VALID_KEYS',
    'ReleaseConfig',
    'load_config',
]
