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


"""Subprocess runner shared by the git backend.

Every ``git`` call made by monorelease goes through :func:`run_command`.
It never raises for a non-zero exit: the caller gets a
:class:`CommandResult` and decides. Read-only queries usually inspect
``result.ok``; mutating calls pass the result to :func:`require_ok`,
which is how a failed ``git commit`` or ``git tag`` reaches the release
orchestrator as ``MR-REPO-OPERATION-FAILED``.

With ``dry_run=True`` nothing is spawned and a successful, empty result
is returned. A command that outlives its timeout is killed and reported
as a failed result with return code ``-1``.
"""

from __future__ import annotations

import subprocess  # noqa: S404 - spawning git is the purpose of this module
import time
from dataclasses import dataclass
from pathlib import Path

from monorelease.errors import E, ReleaseError
from monorelease.logging import get_logger

log = get_logger('monorelease.backends.run')

# Upper bound for a single git call, in seconds.
DEFAULT_TIMEOUT_SECONDS = 300

TIMEOUT_RETURN_CODE = -1


@dataclass(frozen=True)
class CommandResult:
    """What one git invocation produced.

    Attributes:
        command: The argv that was run (or would have been, on a dry run).
        return_code: Exit status; ``-1`` after a timeout.
        stdout: Decoded standard output.
        stderr: Decoded standard error.
        duration: Wall-clock time in milliseconds.
        dry_run: ``True`` when the command was logged but not spawned.
    """

    command: list[str]
    return_code: int
    stdout: str = ''
    stderr: str = ''
    duration: float = 0.0
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.return_code == 0

    @property
    def command_str(self) -> str:
        """The argv joined by spaces, for messages."""
        return ' '.join(self.command)


def run_command(
    cmd: list[str],
    *,
    cwd: Path | str | None = None,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
    dry_run: bool = False,
) -> CommandResult:
    """Run ``cmd`` to completion and capture its output.

    Args:
        cmd: The argv, ``cmd[0]`` being the program.
        cwd: Directory to run in; the current one if omitted.
        timeout: Seconds before the process is killed.
        dry_run: Log the command instead of running it.

    Returns:
        The :class:`CommandResult`; check ``ok`` or use :func:`require_ok`.

    Raises:
        OSError: If the program cannot be started (for example ``git``
            is not on ``PATH``).
    """
    cmd_str = ' '.join(cmd)
    if dry_run:
        log.info('dry_run', cmd=cmd_str)
        return CommandResult(command=cmd, return_code=0, dry_run=True)

    log.debug('run_command', cmd=cmd_str, cwd=str(cwd or '.'))
    start = time.monotonic()
    try:
        proc = subprocess.run(  # noqa: S603 - argv is assembled by the backend
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        duration = (time.monotonic() - start) * 1000
        log.error('command_timeout', cmd=cmd_str, timeout=timeout)
        return CommandResult(
            command=cmd,
            return_code=TIMEOUT_RETURN_CODE,
            stderr=f'timed out after {timeout}s',
            duration=duration,
        )

    result = CommandResult(
        command=cmd,
        return_code=proc.returncode,
        stdout=proc.stdout,
        stderr=proc.stderr,
        duration=(time.monotonic() - start) * 1000,
    )
    if result.ok:
        log.debug('command_ok', cmd=cmd_str, duration=result.duration)
    else:
        log.debug('command_failed', cmd=cmd_str, return_code=result.return_code, stderr=result.stderr[:500])
    return result


def require_ok(result: CommandResult, operation: str) -> CommandResult:
    """Return ``result`` unchanged, or raise if the command failed.

    Args:
        result: The result of a VCS call.
        operation: Short name of what was attempted (e.g. ``"commit"``),
            used in the error message.

    Raises:
        ReleaseError: ``MR-REPO-OPERATION-FAILED`` carrying the command
            and the first line of its stderr.
    """
    if result.ok:
        return result
    detail = result.stderr.strip().splitlines()[0] if result.stderr.strip() else f'exit code {result.return_code}'
    raise ReleaseError(
        code=E.REPO_OPERATION_FAILED,
        message=f'git {operation} failed: {detail}',
        hint=f'Command was: {result.command_str}',
    )


__all__ = [
    'CommandResult',
    'DEFAULT_TIMEOUT_SECONDS',
    'TIMEOUT_RETURN_CODE',
    'require_ok',
    'run_command',
]
