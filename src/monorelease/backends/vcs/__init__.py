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

"""VCS protocol for monorelease.

The :class:`VCS` protocol lists every repository operation the release
pipeline consumes: tags, path-scoped history, stash, index, commit and
push. The release code only ever talks to a ``VCS`` instance handed to
it, so tests substitute a fake.

Implementations:

- :class:`~monorelease.backends.vcs.git.GitCLIBackend`: the ``git`` CLI
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from monorelease.backends._run import CommandResult
from monorelease.backends.vcs._types import DiffSummary as DiffSummary, LogEntry as LogEntry
from monorelease.backends.vcs.git import GitCLIBackend as GitCLIBackend

__all__ = [
    'VCS',
    'DiffSummary',
    'GitCLIBackend',
    'LogEntry',
]


@runtime_checkable
class VCS(Protocol):
    """Protocol for version control operations.

    All methods are async to avoid blocking the event loop when
    shelling out to ``git``. Mutating methods return a
    :class:`CommandResult`; callers decide whether a failure is fatal.
    """

    async def is_repository(self) -> bool:
        """Return ``True`` if the root is inside a repository."""
        ...

    async def is_clean(self) -> bool:
        """Return ``True`` if there is nothing to stash."""
        ...

    async def current_branch(self) -> str:
        """Return the checked-out branch name."""
        ...

    async def current_sha(self) -> str:
        """Return the HEAD commit SHA."""
        ...

    async def list_tags(self, *, pattern: str = '') -> list[str]:
        """Return tag names matching a glob pattern.

        Args:
            pattern: Glob such as ``"api-*"``. Empty lists every tag.
        """
        ...

    async def tag_exists(self, tag_name: str) -> bool:
        """Return ``True`` if the tag exists."""
        ...

    async def log(
        self,
        *,
        since_tag: str | None = None,
        paths: list[str] | None = None,
    ) -> list[LogEntry]:
        """Return commits in chronological order (oldest first).

        Args:
            since_tag: Exclusive lower bound; ``None`` means full history.
            paths: Only commits touching at least one of these paths.
        """
        ...

    async def stash_push(self, label: str) -> CommandResult:
        """Stash all local changes under ``label``."""
        ...

    async def stash_list(self) -> list[str]:
        """Return stash subjects, most recent first."""
        ...

    async def stash_pop(self) -> CommandResult:
        """Restore and drop the most recent stash entry.

        What was staged when the stash was pushed comes back staged.
        """
        ...

    async def add(self, paths: list[str], *, dry_run: bool = False) -> CommandResult:
        """Stage paths for the next commit."""
        ...

    async def commit(self, message: str, *, dry_run: bool = False) -> CommandResult:
        """Commit the staged changes."""
        ...

    async def tag(
        self,
        tag_name: str,
        *,
        message: str | None = None,
        dry_run: bool = False,
    ) -> CommandResult:
        """Create a tag at HEAD."""
        ...

    async def delete_tag(self, tag_name: str) -> CommandResult:
        """Delete a local tag."""
        ...

    async def push(
        self,
        *,
        remote: str = 'origin',
        branch: str | None = None,
        tags: bool = False,
        dry_run: bool = False,
    ) -> CommandResult:
        """Push ``branch`` to ``remote``, or every tag when ``tags`` is set."""
        ...

    async def reset(self, *, hard: bool = False, ref: str = 'HEAD') -> CommandResult:
        """Reset the index (and the work tree when ``hard``) to ``ref``."""
        ...

    async def diff_summary(self, *, staged: bool = True) -> DiffSummary:
        """Return change totals for the index (or work tree)."""
        ...

    async def set_identity(self, *, name: str | None = None, email: str | None = None) -> CommandResult | None:
        """Set the author identity used for the release commit and tags."""
        ...
