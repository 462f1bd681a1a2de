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

"""Per-project changelog sections from the commits of one release.

The release pipeline already holds the exact commit range it used to
pick the bump, so the changelog is built from those same
:class:`~monorelease.history.CommitRecord` objects instead of querying
git a second time.

Changelog generation flow::

    CommitRecord list (oldest first)
         │
         ▼
    parser.parse(message, sha)
         │
         ▼
    group by commit type → ChangelogSection
         │
         ▼
    render_changelog() → "## api-1.3.0 (2026-01-31)" + sections
         │
         ▼
    write_changelog() → prepend under "# Changelog" in CHANGELOG.md
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from monorelease.commit_parsing import CommitParser, ConventionalCommitParser, ParsedCommit
from monorelease.errors import E, ReleaseError
from monorelease.logging import get_logger

if TYPE_CHECKING:
    from monorelease.history import CommitRecord

logger = get_logger(__name__)

CHANGELOG_FILENAME = 'CHANGELOG.md'

# Maps commit type to section heading (display order matters).
_SECTION_ORDER: list[tuple[str, str]] = [
    ('breaking', 'Breaking Changes'),
    ('feat', 'Features'),
    ('fix', 'Bug Fixes'),
    ('perf', 'Performance'),
    ('refactor', 'Refactoring'),
    ('docs', 'Documentation'),
    ('revert', 'Reverts'),
]

# Types left out of changelogs unless the commit is breaking.
_DEFAULT_EXCLUDE_TYPES: frozenset[str] = frozenset({
    'build',
    'chore',
    'ci',
    'style',
    'test',
})

# Regex to extract PR references like (#1234) from commit subjects.
_PR_REF_PATTERN: re.Pattern[str] = re.compile(r'\(#(\d+)\)')

_CHANGELOG_HEADING = '# Changelog\n'


@dataclass(frozen=True)
class ChangelogEntry:
    """A single changelog entry from one commit.

    Attributes:
        type: Commit type (e.g. ``"feat"``, ``"fix"``).
        description: Commit description with any trailing PR ref removed.
        sha: Short commit SHA (first 7 characters).
        scope: Optional scope (e.g. ``"auth"``).
        pr_number: PR number extracted from the description, if any.
        breaking: Whether this is a breaking change.
    """

    type: str
    description: str
    sha: str = ''
    scope: str = ''
    pr_number: str = ''
    breaking: bool = False


@dataclass
class ChangelogSection:
    """A group of changelog entries under one heading."""

    heading: str
    entries: list[ChangelogEntry] = field(default_factory=list)


@dataclass
class Changelog:
    """Changelog section for one project release.

    Attributes:
        version: The released version (e.g. ``"1.3.0"``).
        tag_prefix: Project name; the heading reads ``{tag_prefix}-{version}``.
        sections: Sections grouped by commit type.
        date: Optional ISO 8601 date for the heading.
    """

    version: str
    tag_prefix: str = ''
    sections: list[ChangelogSection] = field(default_factory=list)
    date: str = ''


def _commit_to_entry(cc: ParsedCommit) -> ChangelogEntry:
    pr_match = _PR_REF_PATTERN.search(cc.description)
    description = cc.description
    if pr_match:
        description = description[: pr_match.start()].rstrip()
    return ChangelogEntry(
        type=cc.type,
        description=description,
        sha=cc.sha[:7],
        scope=cc.scope,
        pr_number=pr_match.group(1) if pr_match else '',
        breaking=cc.breaking,
    )


def _group_entries(entries: list[ChangelogEntry]) -> list[ChangelogSection]:
    """Group entries into sections in ``_SECTION_ORDER``; unknown types go last."""
    buckets: dict[str, list[ChangelogEntry]] = {}
    for entry in entries:
        key = 'breaking' if entry.breaking else entry.type
        buckets.setdefault(key, []).append(entry)

    sections: list[ChangelogSection] = []
    for type_key, heading in _SECTION_ORDER:
        bucket = buckets.pop(type_key, [])
        if bucket:
            sections.append(ChangelogSection(heading=heading, entries=bucket))

    for type_key, bucket in sorted(buckets.items()):
        sections.append(ChangelogSection(heading=type_key.capitalize(), entries=bucket))

    return sections


def build_changelog(
    records: Iterable[CommitRecord],
    *,
    version: str,
    tag_prefix: str = '',
    date: str = '',
    exclude_types: frozenset[str] | None = None,
    commit_parser: CommitParser | None = None,
) -> Changelog:
    """Build a :class:`Changelog` from the commits of one release.

    Args:
        records: Commits in scope for the release, oldest first.
        version: The new version.
        tag_prefix: Project name used in the heading.
        date: ISO date for the heading.
        exclude_types: Commit types to leave out. Defaults to
            ``_DEFAULT_EXCLUDE_TYPES``. Breaking commits are never left out.
        commit_parser: Parser used to split messages into scope and
            description. Defaults to :class:`ConventionalCommitParser`.
    """
    parser = commit_parser or ConventionalCommitParser()
    if exclude_types is None:
        exclude_types = _DEFAULT_EXCLUDE_TYPES

    entries: list[ChangelogEntry] = []
    for record in records:
        cc = parser.parse(record.message, sha=record.hash)
        if not cc.type:
            continue
        if cc.type in exclude_types and not cc.breaking:
            continue
        entries.append(_commit_to_entry(cc))

    return Changelog(version=version, tag_prefix=tag_prefix, sections=_group_entries(entries), date=date)


def _render_entry(entry: ChangelogEntry) -> str:
    """Render one entry as ``- **scope**: description (sha, #pr)``."""
    parts: list[str] = ['- ']
    if entry.scope:
        parts.append(f'**{entry.scope}**: ')
    parts.append(entry.description)

    refs = [ref for ref in (entry.sha, f'#{entry.pr_number}' if entry.pr_number else '') if ref]
    if refs:
        parts.append(f' ({", ".join(refs)})')
    return ''.join(parts)


def render_changelog(changelog: Changelog) -> str:
    """Render a :class:`Changelog` as a markdown section."""
    title = f'{changelog.tag_prefix}-{changelog.version}' if changelog.tag_prefix else changelog.version
    heading = f'## {title}'
    if changelog.date:
        heading += f' ({changelog.date})'
    lines: list[str] = [heading, '']

    for section in changelog.sections:
        lines.append(f'### {section.heading}')
        lines.append('')
        lines.extend(_render_entry(entry) for entry in section.entries)
        lines.append('')

    return '\n'.join(lines).rstrip() + '\n'


def write_changelog(changelog_path: Path, rendered: str) -> bool:
    """Prepend a rendered section to ``CHANGELOG.md``.

    The section goes right under the ``# Changelog`` heading, which is
    created when missing. When the section heading (the version line,
    date excluded) is already present the write is skipped so re-runs do
    not duplicate entries.

    Returns:
        ``True`` if the file was written, ``False`` if skipped.

    Raises:
        ReleaseError: ``MR-REPO-OPERATION-FAILED`` if the file cannot
            be read or written.
    """
    first_line = rendered.split('\n', 1)[0].strip()
    version_heading = first_line.split(' (', 1)[0]

    try:
        existing = changelog_path.read_text(encoding='utf-8') if changelog_path.exists() else None
    except OSError as exc:
        raise ReleaseError(
            code=E.REPO_OPERATION_FAILED,
            message=f'Cannot read {changelog_path}: {exc}',
        ) from exc

    if existing is not None:
        if any(line.split(' (', 1)[0].strip() == version_heading for line in existing.splitlines()):
            logger.info('changelog_skip_duplicate', path=str(changelog_path), version_heading=version_heading)
            return False

        heading_line = _CHANGELOG_HEADING.strip()
        if existing.lstrip().startswith(heading_line):
            before, after = existing.split(heading_line, 1)
            new_content = before + heading_line + '\n\n' + rendered + '\n' + after.lstrip('\n')
        else:
            new_content = _CHANGELOG_HEADING + '\n' + rendered + '\n' + existing
    else:
        new_content = _CHANGELOG_HEADING + '\n' + rendered

    try:
        changelog_path.parent.mkdir(parents=True, exist_ok=True)
        changelog_path.write_text(new_content, encoding='utf-8')
    except OSError as exc:
        raise ReleaseError(
            code=E.REPO_OPERATION_FAILED,
            message=f'Cannot write {changelog_path}: {exc}',
            hint=f'Check file permissions for {changelog_path}.',
        ) from exc

    logger.info('changelog_written', path=str(changelog_path), version_heading=version_heading)
    return True


__all__ = [
    'CHANGELOG_FILENAME',
    'Changelog',
    'ChangelogEntry',
    'ChangelogSection',
    'build_changelog',
    'render_changelog',
    'write_changelog',
]
