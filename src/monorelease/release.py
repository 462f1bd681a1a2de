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

"""Release orchestration: one commit, one tag per released project.

Drives the whole run as a small state machine. Every project is
processed in configuration order, one at a time: the working tree, the
index and the stash are shared by all of them.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                            │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ ReleaseDecision         │ What happened to one project: old version,  │
    │                         │ new version (or none), severity, commits.   │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Ledger                  │ project → ReleaseDecision for this run.     │
    │                         │ Finalizing reads it to know what to tag.    │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Aborting                │ Something broke: put the repo back exactly  │
    │                         │ as it was, give back the stash, re-raise.   │
    └─────────────────────────┴─────────────────────────────────────────────┘

State machine::

    IDLE ──open session──→ SESSION_OPEN ──→ PER_PROJECT_LOOP ──→ FINALIZING
                                │                 │                  │
                                └───── error ─────┴──────────────────┤
                                                  ▼                  ▼
                                              ABORTING ──────→ SESSION_CLOSED

Per project::

    read_manifest(root / project)          → current version (never cached)
    find_last_release(vcs, project, ver)   → tag or None + warning
    scope_history(vcs, project, common)    → CommitRecords
    fold_severity(types, prefix_rules)     → severity
    resolve_next(current, severity)        → next version or None
    write_version() + write_changelog()    → staged for the release commit

Finalizing::

    every tag absent? → vcs.commit(commit_message) → vcs.tag(project-version)…
                      → [--push] vcs.push(branch) → vcs.push(tags)

Usage::

    from monorelease.release import release

    result = await release(vcs=GitCLIBackend(root), workspace_root=root, config=config)
    for decision in result.released:
        print(decision.tag)
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from monorelease.backends._run import CommandResult, require_ok
from monorelease.backends.vcs import VCS, DiffSummary
from monorelease.changelog import CHANGELOG_FILENAME, build_changelog, render_changelog, write_changelog
from monorelease.commit_parsing import CommitParser, ConventionalCommitParser, ReleaseSeverity, fold_severity
from monorelease.config import ReleaseConfig
from monorelease.errors import E, ReleaseError, ReleaseWarning
from monorelease.history import CommitRecord, find_last_release, format_tag, scope_history
from monorelease.logging import get_logger
from monorelease.manifest import Manifest, read_manifest, write_version
from monorelease.session import SessionGuard, SessionToken
from monorelease.versioning import SemVer, resolve_next

logger = get_logger(__name__)


class ReleaseState(Enum):
    """States of a release run."""

    IDLE = 'idle'
    SESSION_OPEN = 'session-open'
    PER_PROJECT_LOOP = 'per-project-loop'
    FINALIZING = 'finalizing'
    ABORTING = 'aborting'
    SESSION_CLOSED = 'session-closed'


@dataclass(frozen=True)
class ProjectDescriptor:
    """A project as read at the start of its iteration.

    Attributes:
        name: Root-relative path, also the tag prefix.
        path: Absolute project directory.
        manifest: The manifest and its declared version.
    """

    name: str
    path: Path
    manifest: Manifest

    @property
    def version(self) -> str:
        """Version declared in the manifest."""
        return self.manifest.version


@dataclass(frozen=True)
class ReleaseDecision:
    """Outcome for one project.

    Attributes:
        project: Project name.
        previous_version: Manifest version before the run.
        next_version: New version, or ``None`` when no release is needed.
        severity: Strongest severity among the scoped commits.
        since_tag: Lower bound of the scanned range (``None`` = full history).
        commits: The commits that were classified, oldest first.
    """

    project: str
    previous_version: str
    next_version: str | None
    severity: ReleaseSeverity
    since_tag: str | None = None
    commits: tuple[CommitRecord, ...] = ()

    @property
    def released(self) -> bool:
        """Whether this project gets a new version."""
        return self.next_version is not None

    @property
    def tag(self) -> str | None:
        """The tag to create, if released."""
        return format_tag(self.project, self.next_version) if self.next_version else None

    @property
    def summary(self) -> str:
        """One-line human summary of the decision."""
        if self.next_version is None:
            return f'no release required for {self.project}'
        return f'{self.project}: {self.previous_version} -> {self.next_version} ({self.severity.value})'


@dataclass
class ReleaseResult:
    """Outcome of a release run.

    Attributes:
        ledger: Decision per project, in processing order.
        warnings: Recoverable problems (e.g. missing release tags).
        tags_created: Tags actually created (empty in dry-run).
        committed: Whether the release commit was created.
        pushed: Whether the branch and tags were pushed.
        diff: Staged totals logged before the release commit.
        dry_run: Whether this was a dry run.
        states: Every state the run went through.
    """

    ledger: dict[str, ReleaseDecision] = field(default_factory=dict)
    warnings: list[ReleaseWarning] = field(default_factory=list)
    tags_created: list[str] = field(default_factory=list)
    committed: bool = False
    pushed: bool = False
    diff: DiffSummary | None = None
    dry_run: bool = False
    states: list[ReleaseState] = field(default_factory=list)

    @property
    def state(self) -> ReleaseState:
        """The last state reached."""
        return self.states[-1] if self.states else ReleaseState.IDLE

    @property
    def released(self) -> list[ReleaseDecision]:
        """Decisions that produced a new version."""
        return [d for d in self.ledger.values() if d.released]


def _utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class ReleaseOrchestrator:
    """Runs one release over every configured project.

    Args:
        vcs: VCS backend; the only way the run touches git.
        workspace_root: Repository root; project paths are relative to it.
        config: Validated configuration.
        dry_run: Compute and log every decision without writing files,
            staging, committing, tagging or pushing.
        push: Push the current branch and all tags after tagging.
        git_username: Optional ``user.name`` for the release commit.
        git_email: Optional ``user.email`` for the release commit.
        commit_parser: Parser for commit messages. Defaults to
            :class:`ConventionalCommitParser`.
        session: Session guard; a fresh :class:`SessionGuard` by default.
    """

    def __init__(
        self,
        *,
        vcs: VCS,
        workspace_root: Path,
        config: ReleaseConfig,
        dry_run: bool = False,
        push: bool = False,
        git_username: str | None = None,
        git_email: str | None = None,
        commit_parser: CommitParser | None = None,
        session: SessionGuard | None = None,
    ) -> None:
        """Store collaborators; nothing touches git until :meth:`run`."""
        self._vcs = vcs
        self._root = workspace_root
        self._config = config
        self._dry_run = dry_run
        self._push = push
        self._git_username = git_username
        self._git_email = git_email
        self._parser = commit_parser or ConventionalCommitParser()
        self._guard = session or SessionGuard(vcs)

        self.result = ReleaseResult(dry_run=dry_run)
        self._start_sha = ''
        self._branch = ''
        self._staged: list[str] = []
        self._created_files: list[Path] = []

    @property
    def state(self) -> ReleaseState:
        """The current state."""
        return self.result.state

    def _enter(self, state: ReleaseState) -> None:
        logger.debug('release_state', state=state.value)
        self.result.states.append(state)

    def _relative(self, path: Path) -> str:
        return path.relative_to(self._root).as_posix()

    async def _preflight(self) -> None:
        """Checks that run before anything is stashed."""
        try:
            await self._check_checkout()
        except OSError as exc:
            raise ReleaseError(
                code=E.REPO_OPERATION_FAILED,
                message=f'Could not run git: {exc}',
                hint='Check that git is installed and on PATH.',
            ) from exc

    async def _check_checkout(self) -> None:
        if not await self._vcs.is_repository():
            raise ReleaseError(
                code=E.REPO_NOT_A_REPOSITORY,
                message=f'{self._root} is not inside a git repository',
                hint='Run monorelease from the root of the monorepo checkout.',
            )
        if self._git_username or self._git_email:
            await self._vcs.set_identity(name=self._git_username, email=self._git_email)

        self._branch = await self._vcs.current_branch()
        if self._branch != self._config.main_branch:
            logger.warning(
                'not_on_main_branch',
                branch=self._branch or '(detached)',
                main_branch=self._config.main_branch,
            )
        if self._push and not self._branch:
            raise ReleaseError(
                code=E.REPO_OPERATION_FAILED,
                message='Cannot push a release from a detached HEAD',
                hint=f'Check out {self._config.main_branch} before running with --push.',
            )
        self._start_sha = await self._vcs.current_sha()

    async def run(self) -> ReleaseResult:
        """Execute the release.

        Returns:
            The :class:`ReleaseResult`; ``result.state`` is
            ``SESSION_CLOSED`` on success.

        Raises:
            ReleaseError: Configuration, version or repository failures.
                Anything raised after the session opened is re-raised
                only after the repository is rolled back and the stash
                restored. Unexpected exceptions are wrapped as
                ``MR-REPO-OPERATION-FAILED``.
        """
        self._enter(ReleaseState.IDLE)
        await self._preflight()

        token = await self._guard.open()
        self._enter(ReleaseState.SESSION_OPEN)
        try:
            self._enter(ReleaseState.PER_PROJECT_LOOP)
            for name in self._config.projects:
                decision = await self._process_project(name)
                self.result.ledger[name] = decision
            self._enter(ReleaseState.FINALIZING)
            await self._finalize()
        except BaseException as exc:
            self._enter(ReleaseState.ABORTING)
            logger.error('release_aborting', error=str(exc) or type(exc).__name__)
            await self._rollback()
            await self._guard.close_quietly(token)
            self._enter(ReleaseState.SESSION_CLOSED)
            if isinstance(exc, Exception) and not isinstance(exc, ReleaseError):
                raise ReleaseError(
                    code=E.REPO_OPERATION_FAILED,
                    message=f'Release failed: {exc}',
                    hint='The repository was reset to its state before the run.',
                ) from exc
            raise

        await self._close_after_success(token)
        self._enter(ReleaseState.SESSION_CLOSED)
        logger.info(
            'release complete',
            released=len(self.result.released),
            skipped=len(self.result.ledger) - len(self.result.released),
            dry_run=self._dry_run,
        )
        return self.result

    async def _close_after_success(self, token: SessionToken) -> None:
        """Restore the stash once the release is final.

        The commit and tags already exist at this point, so a pop that
        fails (typically a conflict with a bumped manifest) becomes a
        warning and the stash is left in place.
        """
        try:
            await self._guard.close(token)
        except ReleaseError as exc:
            logger.warning('session_stash_not_restored', label=token.label, error=str(exc))
            self.result.warnings.append(
                ReleaseWarning(
                    code=E.REPO_STASH_NOT_RESTORED,
                    message=f"Could not re-apply stash '{token.label}': {exc.info.message}",
                    hint='Resolve the conflict, then run git stash pop (or git stash drop) by hand.',
                )
            )

    async def _process_project(self, name: str) -> ReleaseDecision:
        """Scope, classify and resolve one project, staging its edits."""
        project_dir = self._root / name
        project = ProjectDescriptor(name=name, path=project_dir, manifest=read_manifest(project_dir))
        current = SemVer.parse(project.version)

        last = await find_last_release(self._vcs, name, project.version)
        if last.warning is not None:
            self.result.warnings.append(last.warning)

        records = tuple([
            record
            async for record in scope_history(
                self._vcs,
                name,
                since_tag=last.tag,
                common_paths=self._config.common,
                commit_parser=self._parser,
            )
        ])
        severity = fold_severity((t for r in records for t in r.release_types), self._config.prefix_rules)
        next_version = resolve_next(current, severity)

        decision = ReleaseDecision(
            project=name,
            previous_version=project.version,
            next_version=str(next_version) if next_version else None,
            severity=severity,
            since_tag=last.tag,
            commits=records,
        )
        if not decision.released:
            logger.info(decision.summary, project=name, commits=len(records))
            return decision

        logger.info(
            'project_bump',
            project=name,
            old=decision.previous_version,
            new=decision.next_version,
            severity=severity.value,
            commits=len(records),
        )
        await self._stage_project(project, decision)
        return decision

    async def _stage_project(self, project: ProjectDescriptor, decision: ReleaseDecision) -> None:
        """Rewrite the manifest and changelog of a released project and stage them."""
        assert decision.next_version is not None
        manifest_rel = self._relative(project.manifest.path)
        changelog_path = project.path / CHANGELOG_FILENAME
        changelog_rel = self._relative(changelog_path)
        paths = [manifest_rel]

        if self._dry_run:
            logger.info(f'would have bumped {manifest_rel} to {decision.next_version}', project=project.name)
        else:
            write_version(project.manifest, decision.next_version)
            logger.info(f'bumped {manifest_rel}', project=project.name, version=decision.next_version)

        if self._config.changelog:
            paths.append(changelog_rel)
            if self._dry_run:
                logger.info(f'would have written {changelog_rel}', project=project.name)
            else:
                changelog = build_changelog(
                    decision.commits,
                    version=decision.next_version,
                    tag_prefix=project.name,
                    date=_utc_today(),
                    commit_parser=self._parser,
                )
                existed = changelog_path.exists()
                if write_changelog(changelog_path, render_changelog(changelog)) and not existed:
                    self._created_files.append(changelog_path)
                logger.info(f'change log {changelog_rel} updated', project=project.name)

        require_ok(await self._vcs.add(paths, dry_run=self._dry_run), 'add')
        self._staged.extend(paths)

    async def _finalize(self) -> None:
        """Commit once, tag every released project, optionally push."""
        released = self.result.released
        if not released:
            logger.info('nothing_to_release', projects=len(self.result.ledger))
            return

        for decision in released:
            assert decision.tag is not None
            if await self._vcs.tag_exists(decision.tag):
                raise ReleaseError(
                    code=E.REPO_TAG_EXISTS,
                    message=f'Tag {decision.tag} already exists',
                    hint=f'The manifest of {decision.project} is behind its tags; fix its version field.',
                )

        if self._staged:
            if not self._dry_run:
                self.result.diff = await self._vcs.diff_summary(staged=True)
                logger.info(
                    'release_diff',
                    changed=self.result.diff.changed,
                    insertions=self.result.diff.insertions,
                    deletions=self.result.diff.deletions,
                )
            require_ok(await self._vcs.commit(self._config.commit_message, dry_run=self._dry_run), 'commit')
            self.result.committed = not self._dry_run

        for decision in released:
            assert decision.tag is not None
            require_ok(await self._vcs.tag(decision.tag, dry_run=self._dry_run), f'tag {decision.tag}')
            if self._dry_run:
                logger.info(f'would have created tag {decision.tag}', project=decision.project)
            else:
                self.result.tags_created.append(decision.tag)
                logger.info(f'tag {decision.tag} created', project=decision.project)

        if not self._push:
            return
        remote = self._config.remote
        require_ok(
            await self._vcs.push(remote=remote, branch=self._branch, dry_run=self._dry_run),
            f'push {remote} {self._branch}',
        )
        self.result.pushed = not self._dry_run
        require_ok(await self._vcs.push(remote=remote, tags=True, dry_run=self._dry_run), f'push {remote} --tags')
        logger.info('pushed branch and tags', remote=remote, branch=self._branch, dry_run=self._dry_run)

    async def _rollback(self) -> None:
        """Undo everything this run did locally; never raises.

        Tags created by this run are deleted and the branch is reset to
        the commit the run started from. Once the branch was pushed only
        the index and work tree are reset, so local history keeps
        matching the remote.
        """
        if self._dry_run:
            return

        if not self.result.pushed:
            for tag in reversed(self.result.tags_created):
                await self._quietly(f'delete tag {tag}', self._vcs.delete_tag(tag))
            self.result.tags_created.clear()
            ref = self._start_sha or 'HEAD'
        else:
            ref = 'HEAD'

        await self._quietly('reset', self._vcs.reset(hard=True, ref=ref))

        for path in self._created_files:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.error('rollback_unlink_failed', path=str(path), error=str(exc))
        self._created_files.clear()
        self._staged.clear()
        self.result.committed = False
        logger.info('rollback_complete', ref=ref)

    async def _quietly(self, operation: str, call: Awaitable[CommandResult]) -> None:
        try:
            result = await call
            if not result.ok:
                logger.error('rollback_step_failed', operation=operation, stderr=result.stderr.strip()[:500])
        except Exception as exc:  # noqa: BLE001 - the original error is re-raised by run()
            logger.error('rollback_step_failed', operation=operation, error=str(exc))


async def release(
    *,
    vcs: VCS,
    workspace_root: Path,
    config: ReleaseConfig,
    dry_run: bool = False,
    push: bool = False,
    git_username: str | None = None,
    git_email: str | None = None,
    commit_parser: CommitParser | None = None,
) -> ReleaseResult:
    """Run a release. See :class:`ReleaseOrchestrator` for the arguments."""
    orchestrator = ReleaseOrchestrator(
        vcs=vcs,
        workspace_root=workspace_root,
        config=config,
        dry_run=dry_run,
        push=push,
        git_username=git_username,
        git_email=git_email,
        commit_parser=commit_parser,
    )
    return await orchestrator.run()


__all__ = [
    'ProjectDescriptor',
    'ReleaseDecision',
    'ReleaseOrchestrator',
    'ReleaseResult',
    'ReleaseState',
    'release',
]
