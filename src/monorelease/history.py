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

"""Path-scoped commit history since a project's last release.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Release tag         │ ``{project}-{version}``, e.g. ``api-1.2.0``.  │
    │                     │ The only way a last release is located.       │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ LastRelease         │ The tag matching the manifest version, or     │
    │                     │ ``None`` plus a warning when it is missing.   │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Common paths        │ Shared directories. A commit there counts     │
    │                     │ for every project.                            │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ scope_history()     │ One-shot async stream of CommitRecords in     │
    │                     │ ``(tag, HEAD]`` touching project or common.   │
    └─────────────────────┴────────────────────────────────────────────────┘

Scoping flow for project ``api`` at manifest version ``1.2.0``::

    vcs.list_tags(pattern='api-*')
         │  keep semver suffixes, sort newest first
         ▼
    'api-1.2.0' present? ──no──→ warning MR-HISTORY-TAG-MISSING, since=None
         │ yes
         ▼
    vcs.log(since_tag='api-1.2.0', paths=['api', *common])
         │  dedupe by hash, oldest first
         ▼
    CommitRecord(hash, message, commit_type, breaking, position)
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from monorelease.backends.vcs import VCS
from monorelease.commit_parsing import BREAKING_CHANGE, CommitParser, ConventionalCommitParser
from monorelease.errors import E, ReleaseError, ReleaseWarning
from monorelease.logging import get_logger
from monorelease.versioning import SemVer

logger = get_logger(__name__)


def format_tag(project: str, version: str | SemVer) -> str:
    """Return the release tag for ``project`` at ``version``.

    >>> format_tag('api', '1.2.0')
    'api-1.2.0'
    """
    return f'{project}-{version}'


def tag_version(tag: str, project: str) -> SemVer | None:
    """Return the version encoded in a release tag of ``project``.

    Tags of other projects sharing the prefix (``api-client-1.0.0`` for
    project ``api``) and malformed suffixes yield ``None``.
    """
    prefix = f'{project}-'
    if not tag.startswith(prefix):
        return None
    suffix = tag[len(prefix) :]
    if not SemVer.is_valid(suffix):
        return None
    return SemVer.parse(suffix)


@dataclass(frozen=True)
class LastRelease:
    """Where the history of one project starts.

    Attributes:
        project: The project name.
        expected_tag: ``{project}-{manifest version}``.
        tag: ``expected_tag`` if it exists, else ``None`` (full history).
        known_tags: Release tags of the project, highest version first.
        warning: Set when ``expected_tag`` is missing.
    """

    project: str
    expected_tag: str
    tag: str | None
    known_tags: tuple[str, ...] = ()
    warning: ReleaseWarning | None = None


async def find_last_release(vcs: VCS, project: str, version: str) -> LastRelease:
    """Locate the release tag matching the manifest version.

    Args:
        vcs: VCS backend.
        project: Project name (its root-relative path).
        version: Version currently declared in the project's manifest.

    Returns:
        A :class:`LastRelease`. A missing tag is not an error: the
        result carries ``tag=None`` and an ``MR-HISTORY-TAG-MISSING``
        warning, and callers scan the full history.
    """
    expected = format_tag(project, version)
    versions: list[tuple[SemVer, str]] = []
    for tag in await vcs.list_tags(pattern=f'{project}-*'):
        parsed = tag_version(tag, project)
        if parsed is not None:
            versions.append((parsed, tag))
    versions.sort(key=lambda item: item[0], reverse=True)
    known = tuple(tag for _, tag in versions)

    if expected in known:
        logger.debug('last_release_found', project=project, tag=expected)
        return LastRelease(project=project, expected_tag=expected, tag=expected, known_tags=known)

    newest = known[0] if known else ''
    hint = (
        f'Newest release tag for {project} is {newest}; the manifest may be out of sync.'
        if newest
        else f'First release of {project}: no {project}-* tags exist yet.'
    )
    warning = ReleaseWarning(
        code=E.HISTORY_TAG_MISSING,
        message=f'Tag {expected} not found; scanning the full history of {project}',
        hint=hint,
    )
    logger.warning('release_tag_missing', project=project, expected=expected, newest=newest or None)
    return LastRelease(project=project, expected_tag=expected, tag=None, known_tags=known, warning=warning)


@dataclass(frozen=True)
class CommitRecord:
    """One commit in scope for a project's release.

    Attributes:
        hash: Full commit SHA.
        message: Full commit message.
        commit_type: Commit type from the parser (``"feat"``, or ``""``
            when unrecognized).
        breaking: Whether the commit is a breaking change.
        position: 0-based chronological index within the scoped range.
    """

    hash: str
    message: str
    commit_type: str
    breaking: bool = False
    position: int = field(default=0, compare=False)

    @property
    def release_types(self) -> tuple[str, ...]:
        """Classifier tokens: the type, plus ``"BREAKING CHANGE"`` when breaking."""
        if self.breaking:
            return (self.commit_type, BREAKING_CHANGE)
        return (self.commit_type,)


async def scope_history(
    vcs: VCS,
    project: str,
    *,
    since_tag: str | None,
    common_paths: Sequence[str] = (),
    commit_parser: CommitParser | None = None,
) -> AsyncIterator[CommitRecord]:
    """Yield the commits in ``(since_tag, HEAD]`` relevant to ``project``.

    One log query covers the project path and every common path, so a
    commit touching both is reported once; hashes are de-duplicated on
    top of that. The stream reflects a single point-in-time query and
    cannot be restarted.

    Args:
        vcs: VCS backend.
        project: Project root-relative path.
        since_tag: Exclusive lower bound, or ``None`` for full history.
        common_paths: Shared paths whose commits count for every project.
        commit_parser: Parser producing the commit type. Defaults to
            :class:`ConventionalCommitParser`.

    Raises:
        ReleaseError: ``MR-REPO-OPERATION-FAILED`` if the log query fails.
    """
    parser = commit_parser or ConventionalCommitParser()
    paths = [project, *(p for p in common_paths if p != project)]
    try:
        entries = await vcs.log(since_tag=since_tag, paths=paths)
    except OSError as exc:
        raise ReleaseError(
            code=E.REPO_OPERATION_FAILED,
            message=f'git log failed for {project}: {exc}',
        ) from exc

    logger.debug('history_scoped', project=project, since=since_tag or '(all)', paths=paths, count=len(entries))

    seen: set[str] = set()
    position = 0
    for entry in entries:
        if entry.hash in seen:
            continue
        seen.add(entry.hash)
        parsed = parser.parse(entry.message, sha=entry.hash)
        yield CommitRecord(
            hash=entry.hash,
            message=entry.message,
            commit_type=parsed.type,
            breaking=parsed.breaking,
            position=position,
        )
        position += 1


__all__ = [
    'CommitRecord',
    'LastRelease',
    'find_last_release',
    'format_tag',
    'scope_history',
    'tag_version',
]
