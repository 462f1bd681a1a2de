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

"""CLI entry point for monorelease.

Constructs the git backend and injects it into the release pipeline.

Subcommands::

    monorelease release   Bump, tag and (optionally) push every changed project
    monorelease init      Scaffold monorelease.toml from the projects found
    monorelease explain   Explain an error code

Usage::

    # Preview what would be released:
    monorelease release --dry-run

    # Release and push, committing as a bot:
    monorelease release --push --git.username ci-bot --git.email ci@example.com

    # Explain an error:
    monorelease explain MR-HISTORY-TAG-MISSING

Exit codes: ``0`` success, ``1`` any release error, ``2`` usage error,
``130`` interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import assert_never

from rich_argparse import RichHelpFormatter

from monorelease import __version__
from monorelease.backends.vcs import GitCLIBackend
from monorelease.config import CONFIG_FILENAME, load_config
from monorelease.errors import ErrorKind, ReleaseError, explain, render_error, render_warning
from monorelease.init import init_config, print_scaffold_preview
from monorelease.logging import configure_logging, get_logger
from monorelease.release import ReleaseResult, release

logger = get_logger(__name__)


def _find_repo_root() -> Path:
    """Walk up from CWD to the directory holding ``monorelease.toml``.

    Falls back to the nearest directory with a ``.git`` entry, then to
    CWD itself, so ``load_config`` can report what is missing.
    """
    cwd = Path.cwd().resolve()
    for parent in [cwd, *cwd.parents]:
        if (parent / CONFIG_FILENAME).is_file():
            return parent
    for parent in [cwd, *cwd.parents]:
        if (parent / '.git').exists():
            return parent
    return cwd


def describe_failure(kind: ErrorKind) -> str:
    """Return the one-line summary printed for an error family."""
    match kind:
        case ErrorKind.CONFIGURATION:
            return 'configuration problem'
        case ErrorKind.VERSION:
            return 'a project version could not be read or bumped; the release was rolled back'
        case ErrorKind.HISTORY_INCONSISTENCY:
            return 'release history is inconsistent with the manifests; the release was rolled back'
        case ErrorKind.REPOSITORY_OPERATION:
            return 'repository operation failed during release'
        case _:
            assert_never(kind)


def _print_result(result: ReleaseResult) -> None:
    prefix = '  (dry run) ' if result.dry_run else '  '
    for decision in result.ledger.values():
        if decision.released:
            print(f'{prefix}📦 {decision.summary}')  # noqa: T201 - CLI output
        else:
            print(f'{prefix}⏭️  {decision.summary}')  # noqa: T201 - CLI output
    if result.tags_created:
        print(f'  🏷️  {", ".join(result.tags_created)}')  # noqa: T201 - CLI output
    if result.pushed:
        print('  🚀 pushed branch and tags')  # noqa: T201 - CLI output


async def _cmd_release(args: argparse.Namespace) -> int:
    """Handle the ``release`` subcommand."""
    root = _find_repo_root()
    config = load_config(root)
    vcs = GitCLIBackend(root)

    result = await release(
        vcs=vcs,
        workspace_root=root,
        config=config,
        dry_run=args.dry_run,
        push=args.push,
        git_username=args.git_username,
        git_email=args.git_email,
    )
    for warning in result.warnings:
        render_warning(warning)
    _print_result(result)
    return 0


async def _cmd_init(args: argparse.Namespace) -> int:
    """Handle the ``init`` subcommand."""
    root = _find_repo_root()
    toml_fragment = await init_config(GitCLIBackend(root), root, dry_run=args.dry_run, force=args.force)
    if toml_fragment:
        print_scaffold_preview(toml_fragment)
        if not args.dry_run:
            print('  ✅ Configuration written')  # noqa: T201 - CLI output
    else:
        print(f'  ℹ️  {CONFIG_FILENAME} already exists (use --force to overwrite)')  # noqa: T201 - CLI output
    return 0


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    result = explain(args.code)
    if result is None:
        print(f'Unknown error code: {args.code}')  # noqa: T201 - CLI output
        return 1
    print(result)  # noqa: T201 - CLI output
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured :class:`argparse.ArgumentParser`.
    """
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='monorelease',
        description='Independent semantic releases for the projects of a monorepo.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Show debug output, including every git command.',
    )
    parser.add_argument(
        '--quiet',
        '-q',
        action='store_true',
        help='Only show warnings and errors.',
    )
    parser.add_argument(
        '--json-log',
        action='store_true',
        help='Emit log lines as JSON objects.',
    )

    subparsers = parser.add_subparsers(dest='command')

    release_parser = subparsers.add_parser(
        'release',
        help='Bump, changelog, commit and tag every project with releasable commits.',
        formatter_class=RichHelpFormatter,
    )
    release_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log every decision without writing files, committing, tagging or pushing.',
    )
    release_parser.add_argument(
        '--push',
        action='store_true',
        help='Push the current branch and all tags after tagging.',
    )
    release_parser.add_argument(
        '--git.username',
        dest='git_username',
        metavar='NAME',
        default=None,
        help='Set git user.name before committing.',
    )
    release_parser.add_argument(
        '--git.email',
        dest='git_email',
        metavar='EMAIL',
        default=None,
        help='Set git user.email before committing.',
    )

    init_parser = subparsers.add_parser(
        'init',
        help=f'Scaffold {CONFIG_FILENAME} for the repository.',
        formatter_class=RichHelpFormatter,
    )
    init_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Preview generated config without writing files.',
    )
    init_parser.add_argument(
        '--force',
        action='store_true',
        help=f'Overwrite existing {CONFIG_FILENAME}.',
    )

    explain_parser = subparsers.add_parser(
        'explain',
        help='Explain an error code.',
        formatter_class=RichHelpFormatter,
    )
    explain_parser.add_argument(
        'code',
        help='Error code to explain (e.g., MR-REPO-TAG-EXISTS).',
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Arguments without the program name; ``sys.argv[1:]`` by default.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)

    try:
        command = args.command
        if command == 'release':
            return asyncio.run(_cmd_release(args))
        if command == 'init':
            return asyncio.run(_cmd_init(args))
        if command == 'explain':
            return _cmd_explain(args)

        parser.print_help()  # noqa: T201 - CLI output
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return 2

    except ReleaseError as exc:
        render_error(exc)
        print(f'{parser.prog}: {describe_failure(exc.kind)}', file=sys.stderr)  # noqa: T201 - CLI output
        return 1
    except KeyboardInterrupt:
        logger.info('interrupted')
        return 130


def _main() -> None:
    """Wrapper for pyproject.toml [project.scripts] entry point."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'describe_failure',
    'main',
]
