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

"""Structured error system for monorelease.

Every diagnostic has a unique ``MR-NAMED-KEY`` code, a human-readable
message, and an optional hint with a suggested fix. Every code belongs to
exactly one :class:`ErrorKind`, which is what callers dispatch on.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorKind           │ The family a problem belongs to: bad config,  │
    │                     │ bad version, odd history, or a failed git op. │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A unique named ID like "MR-CONFIG-NOT-FOUND"  │
    │                     │ for each problem. Readable at a glance.       │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ReleaseError        │ An exception you can raise. Carries the code, │
    │                     │ message and hint so renderers can show them.  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ReleaseWarning      │ Same card, but for problems the run survives. │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ explain()           │ Looks up an error code and prints details.    │
    └─────────────────────┴────────────────────────────────────────────────┘

Code categories::

    MR-CONFIG-*       Missing or invalid monorelease.toml      (fatal, no mutation)
    MR-VERSION-*      Manifest version missing or not semver    (aborts the run)
    MR-HISTORY-*      Release tag missing for manifest version  (warning only)
    MR-REPO-*         A git operation failed                    (aborts the run)

Usage::

    from monorelease.errors import E, ReleaseError

    raise ReleaseError(
        code=E.CONFIG_NOT_FOUND,
        message='No monorelease.toml found in /repo',
        hint="Run 'monorelease init' to generate one.",
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorKind(Enum):
    """Closed set of error families."""

    CONFIGURATION = 'configuration'
    VERSION = 'version'
    HISTORY_INCONSISTENCY = 'history-inconsistency'
    REPOSITORY_OPERATION = 'repository-operation'


class ErrorCode(str, Enum):
    """Enumeration of all monorelease diagnostic codes."""

    # Configuration
    CONFIG_NOT_FOUND = 'MR-CONFIG-NOT-FOUND'
    CONFIG_PARSE_ERROR = 'MR-CONFIG-PARSE-ERROR'
    CONFIG_INVALID_KEY = 'MR-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'MR-CONFIG-INVALID-VALUE'
    CONFIG_MISSING_REQUIRED = 'MR-CONFIG-MISSING-REQUIRED'
    CONFIG_OVERLAPPING_RULES = 'MR-CONFIG-OVERLAPPING-RULES'

    # Versioning
    VERSION_INVALID = 'MR-VERSION-INVALID'
    VERSION_NOT_FOUND = 'MR-VERSION-NOT-FOUND'

    # History
    HISTORY_TAG_MISSING = 'MR-HISTORY-TAG-MISSING'

    # Repository operations
    REPO_NOT_A_REPOSITORY = 'MR-REPO-NOT-A-REPOSITORY'
    REPO_OPERATION_FAILED = 'MR-REPO-OPERATION-FAILED'
    REPO_TAG_EXISTS = 'MR-REPO-TAG-EXISTS'
    REPO_STASH_NOT_RESTORED = 'MR-REPO-STASH-NOT-RESTORED'

    @property
    def kind(self) -> ErrorKind:
        """The :class:`ErrorKind` this code belongs to."""
        return _KIND_BY_PREFIX[self.value.split('-')[1]]


# Convenience alias for shorter imports.
E = ErrorCode

_KIND_BY_PREFIX: dict[str, ErrorKind] = {
    'CONFIG': ErrorKind.CONFIGURATION,
    'VERSION': ErrorKind.VERSION,
    'HISTORY': ErrorKind.HISTORY_INCONSISTENCY,
    'REPO': ErrorKind.REPOSITORY_OPERATION,
}


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``MR-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class ReleaseError(Exception):
    """Base exception for all monorelease errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def kind(self) -> ErrorKind:
        """The error family, derived from the code."""
        return self.info.code.kind

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


class ReleaseWarning(UserWarning):
    """A recoverable diagnostic collected during a run.

    Same structure as :class:`ReleaseError` but returned to the caller
    instead of being raised.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def kind(self) -> ErrorKind:
        """The error family, derived from the code."""
        return self.info.code.kind

    @property
    def hint(self) -> str:
        """Suggestion for addressing this warning, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.CONFIG_NOT_FOUND: ErrorInfo(
        code=E.CONFIG_NOT_FOUND,
        message='No monorelease.toml found at the repository root.',
        hint="Run 'monorelease init' to generate a default configuration.",
    ),
    E.CONFIG_MISSING_REQUIRED: ErrorInfo(
        code=E.CONFIG_MISSING_REQUIRED,
        message="monorelease.toml does not list any 'projects'.",
        hint='Add projects = ["path/to/project", ...] with root-relative paths.',
    ),
    E.CONFIG_OVERLAPPING_RULES: ErrorInfo(
        code=E.CONFIG_OVERLAPPING_RULES,
        message='A commit type appears under more than one severity in [prefix_rules].',
        hint='List each commit type under exactly one of major, minor or patch.',
    ),
    E.VERSION_INVALID: ErrorInfo(
        code=E.VERSION_INVALID,
        message='A project manifest holds a version that is not a valid semantic version.',
        hint='Fix the version field to MAJOR.MINOR.PATCH; the whole run was rolled back.',
    ),
    E.VERSION_NOT_FOUND: ErrorInfo(
        code=E.VERSION_NOT_FOUND,
        message='A project has no manifest, or its manifest has no version field.',
        hint='Each project needs a pyproject.toml or package.json with a version.',
    ),
    E.HISTORY_TAG_MISSING: ErrorInfo(
        code=E.HISTORY_TAG_MISSING,
        message='No {project}-{version} tag matches the manifest version; the full history was scanned.',
        hint='Tag the last released commit with the matching {project}-{version} name.',
    ),
    E.REPO_NOT_A_REPOSITORY: ErrorInfo(
        code=E.REPO_NOT_A_REPOSITORY,
        message='The working directory is not inside a git repository.',
        hint='Run monorelease from the root of the monorepo checkout.',
    ),
    E.REPO_OPERATION_FAILED: ErrorInfo(
        code=E.REPO_OPERATION_FAILED,
        message='A git command failed during the release; the run was rolled back.',
        hint="Re-run with '--verbose' to see the failing git command and its stderr.",
    ),
    E.REPO_TAG_EXISTS: ErrorInfo(
        code=E.REPO_TAG_EXISTS,
        message='A release tag that this run needs to create already exists.',
        hint='Delete the stale tag or fix the manifest version so it matches the last tag.',
    ),
    E.REPO_STASH_NOT_RESTORED: ErrorInfo(
        code=E.REPO_STASH_NOT_RESTORED,
        message='The release finished but the stashed local changes could not be re-applied.',
        hint="Your changes are still in 'git stash list' under the monorelease-session label; pop it by hand.",
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"MR-CONFIG-NOT-FOUND"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code} ({error_code.kind.value}): {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def _render(label: str, color: str, info: ErrorInfo, out: TextIO) -> None:
    """Render a diagnostic in Rust-compiler style."""
    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(info.message)
        console.print(
            f'[bold {color}]{label}\\[{info.code.value}][/bold {color}]'
            f'[bold]: {msg}[/bold]',
        )
        if info.hint:
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(info.hint)}')
        console.print()
        return

    print(f'{label}[{info.code.value}]: {info.message}', file=out)  # noqa: T201 - CLI output
    if info.hint:
        print('  |', file=out)  # noqa: T201 - CLI output
        print(f'  = hint: {info.hint}', file=out)  # noqa: T201 - CLI output
    print(file=out)  # noqa: T201 - CLI output


def render_error(exc: ReleaseError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style with color.

    Output format::

        error[MR-CONFIG-NOT-FOUND]: No monorelease.toml found in /repo
          |
          = hint: Run 'monorelease init' to generate a default configuration.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    _render('error', 'red', exc.info, file or sys.stderr)


def render_warning(exc: ReleaseWarning, *, file: TextIO | None = None) -> None:
    """Render a warning in the same style as :func:`render_error`."""
    _render('warning', 'yellow', exc.info, file or sys.stderr)


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'ErrorKind',
    'ReleaseError',
    'ReleaseWarning',
    'explain',
    'render_error',
    'render_warning',
]
