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

"""Git VCS backend for monorelease.

The :class:`GitCLIBackend` implements the :class:`VCS` protocol by
delegating to ``git`` via :func:`run_command`.

All methods are async; blocking subprocess calls are dispatched to
``asyncio.to_thread()`` to avoid blocking the event loop.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from monorelease.backends._run import CommandResult, require_ok, run_command
from monorelease.backends.vcs._types import DiffSummary, LogEntry
from monorelease.logging import get_logger

log = get_logger('monorelease.backends.git')

# Unit and record separators keep multi-line commit bodies intact.
_FIELD_SEP = '\x1f'
_RECORD_SEP = '\x1e'


class GitCLIBackend:
    """Default :class:`~monorelease.backends.vcs.VCS` implementation using ``git``.

    Args:
        repo_root: Path to the git repository root.
    """

    def __init__(self, repo_root: Path) -> None:
        """Initialize with the git repository root path."""
        self._root = repo_root

    def _git(self, *args: str, dry_run: bool = False) -> CommandResult:
        """Run a git command synchronously (called via to_thread)."""
        return run_command(['git', *args], cwd=self._root, dry_run=dry_run)

    async def is_repository(self) -> bool:
        """Return ``True`` if the root is inside a git work tree."""
        result = await asyncio.to_thread(self._git, 'rev-parse', '--is-inside-work-tree')
        return result.ok and result.stdout.strip() == 'true'

    async def is_clean(self) -> bool:
        """Return ``True`` if there are no staged, unstaged or untracked changes."""
        result = await asyncio.to_thread(self._git, 'status', '--porcelain')
        require_ok(result, 'status')
        return result.stdout.strip() == ''

    async def current_branch(self) -> str:
        """Return the checked-out branch, or ``''`` when HEAD is detached."""
        result = await asyncio.to_thread(self._git, 'branch', '--show-current')
        return result.stdout.strip() if result.ok else ''

    async def current_sha(self) -> str:
        """Return the current HEAD commit SHA."""
        result = await asyncio.to_thread(self._git, 'rev-parse', 'HEAD')
        require_ok(result, 'rev-parse')
        return result.stdout.strip()

    async def list_tags(self, *, pattern: str = '') -> list[str]:
        """Return tags matching a glob pattern, in ascending version order."""
        cmd_parts = ['tag', '--list', '--sort=version:refname']
        if pattern:
            cmd_parts.append(pattern)
        result = await asyncio.to_thread(self._git, *cmd_parts)
        require_ok(result, 'tag --list')
        if not result.stdout.strip():
            return []
        return result.stdout.strip().splitlines()

    async def tag_exists(self, tag_name: str) -> bool:
        """Return ``True`` if the tag exists."""
        result = await asyncio.to_thread(self._git, 'tag', '-l', tag_name)
        return result.stdout.strip() == tag_name

    async def log(
        self,
        *,
        since_tag: str | None = None,
        paths: list[str] | None = None,
    ) -> list[LogEntry]:
        """Return commits in ``(since_tag, HEAD]`` touching ``paths``, oldest first."""
        cmd_parts = ['log', '--reverse', f'--pretty=format:%H{_FIELD_SEP}%B{_RECORD_SEP}']
        if since_tag:
            cmd_parts.append(f'{since_tag}..HEAD')
        if paths:
            cmd_parts.append('--')
            cmd_parts.extend(paths)
        result = await asyncio.to_thread(self._git, *cmd_parts)
        require_ok(result, 'log')

        entries: list[LogEntry] = []
        for record in result.stdout.split(_RECORD_SEP):
            record = record.strip('\n')
            if not record:
                continue
            sha, _, message = record.partition(_FIELD_SEP)
            entries.append(LogEntry(hash=sha.strip(), message=message.strip()))
        return entries

    async def stash_push(self, label: str) -> CommandResult:
        """Stash every local change, untracked files included, under ``label``."""
        log.info('stash_push', label=label)
        return await asyncio.to_thread(self._git, 'stash', 'push', '--include-untracked', '-m', label)

    async def stash_list(self) -> list[str]:
        """Return stash subjects, most recent first."""
        result = await asyncio.to_thread(self._git, 'stash', 'list', '--format=%gs')
        require_ok(result, 'stash list')
        return [line for line in result.stdout.splitlines() if line.strip()]

    async def stash_pop(self) -> CommandResult:
        """Restore and drop the most recent stash entry, staged changes included."""
        log.info('stash_pop')
        return await asyncio.to_thread(self._git, 'stash', 'pop', '--index')

    async def add(self, paths: list[str], *, dry_run: bool = False) -> CommandResult:
        """Stage the given paths."""
        return await asyncio.to_thread(self._git, 'add', '--', *paths, dry_run=dry_run)

    async def commit(self, message: str, *, dry_run: bool = False) -> CommandResult:
        """Commit whatever is staged."""
        log.info('commit', message=message[:80])
        return await asyncio.to_thread(self._git, 'commit', '-m', message, dry_run=dry_run)

    async def tag(
        self,
        tag_name: str,
        *,
        message: str | None = None,
        dry_run: bool = False,
    ) -> CommandResult:
        """Create an annotated tag at HEAD."""
        log.info('tag', tag=tag_name)
        return await asyncio.to_thread(
            self._git,
            'tag',
            '-a',
            tag_name,
            '-m',
            message or tag_name,
            dry_run=dry_run,
        )

    async def delete_tag(self, tag_name: str) -> CommandResult:
        """Delete a local tag."""
        log.info('delete_tag', tag=tag_name)
        return await asyncio.to_thread(self._git, 'tag', '-d', tag_name)

    async def push(
        self,
        *,
        remote: str = 'origin',
        branch: str | None = None,
        tags: bool = False,
        dry_run: bool = False,
    ) -> CommandResult:
        """Push a branch, or all tags when ``tags`` is set."""
        cmd_parts = ['push', remote]
        if tags:
            cmd_parts.append('--tags')
        elif branch:
            cmd_parts.append(branch)
        log.info('push', remote=remote, branch=branch, tags=tags)
        return await asyncio.to_thread(self._git, *cmd_parts, dry_run=dry_run)

    async def reset(self, *, hard: bool = False, ref: str = 'HEAD') -> CommandResult:
        """Unstage everything, or with ``hard`` also discard tracked changes."""
        cmd_parts = ['reset', '--hard', ref] if hard else ['reset', ref]
        log.info('reset', hard=hard, ref=ref)
        return await asyncio.to_thread(self._git, *cmd_parts)

    async def diff_summary(self, *, staged: bool = True) -> DiffSummary:
        """Return insertion/deletion totals for the index or the work tree."""
        cmd_parts = ['diff', '--shortstat']
        if staged:
            cmd_parts.append('--cached')
        result = await asyncio.to_thread(self._git, *cmd_parts)
        require_ok(result, 'diff')
        return DiffSummary.parse(result.stdout)

    async def set_identity(self, *, name: str | None = None, email: str | None = None) -> CommandResult | None:
        """Set the repository-local author identity used for the release commit."""
        result: CommandResult | None = None
        if name:
            result = require_ok(await asyncio.to_thread(self._git, 'config', 'user.name', name), 'config user.name')
        if email:
            result = require_ok(await asyncio.to_thread(self._git, 'config', 'user.email', email), 'config user.email')
        return result


__all__ = [
    'GitCLIBackend',
]
