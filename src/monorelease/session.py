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

"""Stash/restore boundary around a release run.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ SessionGuard        │ Puts your unfinished work in a labelled box   │
    │                     │ before the release, and hands back exactly    │
    │                     │ that box afterwards.                          │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ SessionToken        │ The claim ticket: the box label, and whether  │
    │                     │ there was anything to put in the box at all.  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Unique label        │ ``monorelease-session <uuid>``. Older stashes │
    │                     │ never carry it, so they are never popped.     │
    └─────────────────────┴────────────────────────────────────────────────┘

Usage::

    guard = SessionGuard(vcs)
    async with guard.session() as token:
        ...  # working tree is clean here
    # local changes are back, unrelated stashes untouched

    # Or manually:
    token = await guard.open()
    try:
        ...
    finally:
        await guard.close(token)
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from monorelease.backends._run import require_ok
from monorelease.backends.vcs import VCS
from monorelease.logging import get_logger

logger = get_logger(__name__)

STASH_LABEL_PREFIX = 'monorelease-session'


def new_label() -> str:
    """Return a stash label unique to one run."""
    return f'{STASH_LABEL_PREFIX} {uuid.uuid4().hex}'


def carries_label(subject: str, label: str) -> bool:
    """Return ``True`` if a stash subject was created with ``label``.

    ``git stash push -m LABEL`` records the subject ``On <branch>: LABEL``.

    >>> carries_label('On main: monorelease-session 1f2e', 'monorelease-session 1f2e')
    True
    >>> carries_label('On main: monorelease-session 1f2e-old', 'monorelease-session 1f2e')
    False
    """
    return subject == label or subject.endswith(f': {label}')


@dataclass(frozen=True)
class SessionToken:
    """Proof of an opened session.

    Attributes:
        label: The stash label reserved for this run.
        stashed: Whether :meth:`SessionGuard.open` created a stash.
    """

    label: str
    stashed: bool


class SessionGuard:
    """Stashes local changes on open and restores exactly them on close.

    Args:
        vcs: VCS backend.
        label: Stash label; a fresh unique one by default.
    """

    def __init__(self, vcs: VCS, *, label: str | None = None) -> None:
        """Initialize with the VCS backend and an optional fixed label."""
        self._vcs = vcs
        self._label = label or new_label()
        self._closed: set[str] = set()

    @property
    def label(self) -> str:
        """The stash label this guard uses."""
        return self._label

    async def open(self) -> SessionToken:
        """Stash uncommitted and untracked changes, if any.

        Raises:
            ReleaseError: ``MR-REPO-OPERATION-FAILED`` if stashing fails.
        """
        if await self._vcs.is_clean():
            logger.debug('session_open_clean', label=self._label)
            return SessionToken(label=self._label, stashed=False)

        require_ok(await self._vcs.stash_push(self._label), 'stash push')
        stashes = await self._vcs.stash_list()
        stashed = bool(stashes) and carries_label(stashes[0], self._label)
        logger.info('session_stashed', label=self._label, stashed=stashed)
        return SessionToken(label=self._label, stashed=stashed)

    async def close(self, token: SessionToken) -> bool:
        """Pop the session stash if it is the most recent entry.

        Safe to call any number of times. Only a stash carrying
        ``token.label`` is ever popped.

        Returns:
            ``True`` if the stash was restored by this call.

        Raises:
            ReleaseError: ``MR-REPO-OPERATION-FAILED`` if the pop fails.
        """
        if not token.stashed or token.label in self._closed:
            return False

        stashes = await self._vcs.stash_list()
        if not stashes or not carries_label(stashes[0], token.label):
            logger.warning(
                'session_stash_not_found',
                label=token.label,
                latest=stashes[0] if stashes else None,
                hint='Your changes may still be in the stash; see git stash list.',
            )
            self._closed.add(token.label)
            return False

        require_ok(await self._vcs.stash_pop(), 'stash pop')
        self._closed.add(token.label)
        logger.info('session_restored', label=token.label)
        return True

    async def close_quietly(self, token: SessionToken) -> None:
        """Like :meth:`close`, but log failures instead of raising."""
        try:
            await self.close(token)
        except Exception as exc:  # noqa: BLE001 - an error is already propagating
            logger.error('session_close_failed', label=token.label, error=str(exc))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[SessionToken]:
        """Open a session for the duration of the ``async with`` block.

        On error the stash is still restored, and a failure to restore it
        is logged without replacing the original exception.
        """
        token = await self.open()
        try:
            yield token
        except BaseException:
            await self.close_quietly(token)
            raise
        await self.close(token)


__all__ = [
    'STASH_LABEL_PREFIX',
    'SessionGuard',
    'SessionToken',
    'carries_label',
    'new_label',
]
