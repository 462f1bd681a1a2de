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

r"""Reading and rewriting the version field of project manifests.

Supported manifests, looked up in this order in the project directory:

- ``pyproject.toml``: ``[project].version``, else ``[tool.poetry].version``
- ``package.json``: top-level ``"version"``

Reads go through tomlkit / json. Rewrites are an exact in-place text
substitution of the version value only: a three-group pattern
(prefix, version, suffix) is matched and only group 2 is replaced, so
comments, key order, quoting and indentation survive untouched.

Usage::

    from monorelease.manifest import read_manifest, write_version

    manifest = read_manifest(Path('api'))
    write_version(manifest, '1.3.0')
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

import tomlkit
import tomlkit.exceptions

from monorelease.errors import E, ReleaseError
from monorelease.logging import get_logger

logger = get_logger(__name__)

MANIFEST_FILENAMES: tuple[str, ...] = ('pyproject.toml', 'package.json')

# Three-group patterns: prefix, version, suffix.
_JSON_VERSION_PATTERN: re.Pattern[str] = re.compile(r'("version"\s*:\s*")([^"]+)(")')
_TOML_VERSION_PATTERN: re.Pattern[str] = re.compile(
    r'^(\s*version\s*=\s*)(["\'])([^"\'\n]*)(\2)',
    re.MULTILINE,
)
_TOML_HEADER_PATTERN: re.Pattern[str] = re.compile(r'^\s*\[', re.MULTILINE)


@dataclass(frozen=True)
class Manifest:
    """A project manifest and the version it declares.

    Attributes:
        path: Absolute path to the manifest file.
        version: The declared version string, unvalidated.
        section: TOML table holding the version (``"project"`` or
            ``"tool.poetry"``), or ``""`` for ``package.json``.
    """

    path: Path
    version: str
    section: str = ''


def find_manifest(project_dir: Path) -> Path:
    """Return the first supported manifest in ``project_dir``.

    Raises:
        ReleaseError: ``MR-VERSION-NOT-FOUND`` if there is none.
    """
    for name in MANIFEST_FILENAMES:
        candidate = project_dir / name
        if candidate.is_file():
            return candidate
    raise ReleaseError(
        code=E.VERSION_NOT_FOUND,
        message=f'No manifest found in {project_dir}',
        hint=f'Add one of {", ".join(MANIFEST_FILENAMES)} with a version field.',
    )


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding='utf-8')
    except OSError as exc:
        raise ReleaseError(
            code=E.VERSION_NOT_FOUND,
            message=f'Cannot read {path}: {exc}',
            hint=f'Check that {path} exists and is readable.',
        ) from exc


def _missing_version(path: Path, where: str) -> ReleaseError:
    return ReleaseError(
        code=E.VERSION_NOT_FOUND,
        message=f'No {where} string in {path}',
        hint='Add a version field to the manifest.',
    )


def read_manifest(project_dir: Path) -> Manifest:
    """Read the manifest of a project directory.

    Raises:
        ReleaseError: ``MR-VERSION-NOT-FOUND`` if the manifest is
            missing, unparseable, or has no string version field.
    """
    path = find_manifest(project_dir)
    text = _read_text(path)

    if path.name == 'package.json':
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ReleaseError(
                code=E.VERSION_NOT_FOUND,
                message=f'Cannot parse {path}: {exc}',
                hint=f'Check that {path} contains valid JSON.',
            ) from exc
        version = data.get('version') if isinstance(data, dict) else None
        if not isinstance(version, str):
            raise _missing_version(path, '"version"')
        return Manifest(path=path, version=version)

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise ReleaseError(
            code=E.VERSION_NOT_FOUND,
            message=f'Cannot parse {path}: {exc}',
            hint=f'Check that {path} contains valid TOML.',
        ) from exc

    project = doc.get('project')
    if isinstance(project, dict) and isinstance(project.get('version'), str):
        return Manifest(path=path, version=str(project['version']), section='project')

    tool = doc.get('tool')
    poetry = tool.get('poetry') if isinstance(tool, dict) else None
    if isinstance(poetry, dict) and isinstance(poetry.get('version'), str):
        return Manifest(path=path, version=str(poetry['version']), section='tool.poetry')

    raise _missing_version(path, '[project].version or [tool.poetry].version')


def _toml_section_span(text: str, section: str) -> tuple[int, int] | None:
    """Return the ``(start, end)`` offsets of a TOML table body."""
    header = re.compile(rf'^\s*\[\s*{re.escape(section)}\s*\]\s*(?:#.*)?$', re.MULTILINE)
    match = header.search(text)
    if match is None:
        return None
    start = match.end()
    following = _TOML_HEADER_PATTERN.search(text, start)
    return start, following.start() if following else len(text)


def _substitute(manifest: Manifest, text: str, new_version: str) -> str | None:
    """Replace the version value in ``text``; ``None`` if it can't be located."""
    if not manifest.section:
        for match in _JSON_VERSION_PATTERN.finditer(text):
            if match.group(2) == manifest.version:
                return text[: match.start(2)] + new_version + text[match.end(2) :]
        return None

    span = _toml_section_span(text, manifest.section)
    if span is None:
        return None
    start, end = span
    match = _TOML_VERSION_PATTERN.search(text, start, end)
    if match is None or match.group(3) != manifest.version:
        return None
    return text[: match.start(3)] + new_version + text[match.end(3) :]


def write_version(manifest: Manifest, new_version: str) -> str:
    """Rewrite the manifest's version value in place.

    Args:
        manifest: The manifest as returned by :func:`read_manifest`.
        new_version: The version to write.

    Returns:
        The old version that was replaced.

    Raises:
        ReleaseError: ``MR-VERSION-NOT-FOUND`` if the version literal
            can no longer be found, or ``MR-REPO-OPERATION-FAILED`` if
            the file cannot be written.
    """
    text = _read_text(manifest.path)
    new_text = _substitute(manifest, text, new_version)
    if new_text is None:
        raise ReleaseError(
            code=E.VERSION_NOT_FOUND,
            message=f'Version literal {manifest.version!r} not found in {manifest.path}',
            hint='The manifest changed while the release was running.',
        )

    try:
        manifest.path.write_text(new_text, encoding='utf-8')
    except OSError as exc:
        raise ReleaseError(
            code=E.REPO_OPERATION_FAILED,
            message=f'Cannot write {manifest.path}: {exc}',
            hint=f'Check file permissions for {manifest.path}.',
        ) from exc

    logger.info(
        'manifest_version_bumped',
        path=str(manifest.path),
        old=manifest.version,
        new=new_version,
    )
    return manifest.version


__all__ = [
    'MANIFEST_FILENAMES',
    'Manifest',
    'find_manifest',
    'read_manifest',
    'write_version',
]
