"""The commit pipeline: detect, configure, sync, chunk, commit, tag, push."""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from autocommit.git.utils import FileStatus, GitClient, GitError

from .chunker import CHUNK_SIZE_LIMIT, Chunk, build_chunks
from .error_policy import ConflictError, ErrorAccumulator, StepKind
from .observer import LoggingObserver, PipelineObserver, PipelineStep
from .outputs import RunResult, publish_outputs
from .sizing import ChangedFile, size_changed_files
from .stager import ChangeSetStager

if TYPE_CHECKING:
	from collections.abc import Callable
	from pathlib import Path

	from autocommit.utils.config_loader import ActionInputs

logger = logging.getLogger(__name__)

T = TypeVar("T")

FETCH_WARNING = (
	"{action} without fetching the repo first could result in an error when pushing. "
	"Enable 'fetch' to get an up-to-date view of the remote."
)


class RunState(str, Enum):
	"""Where a run ended."""

	PENDING = "pending"
	CLEAN = "clean"
	CONFLICTED = "conflicted"
	FAILED = "failed"
	DONE = "done"


class CommitOrchestrator:
	"""
	Runs the commit pipeline once against a repository.

	Git operations run strictly one after another. Failures of the commit,
	tag and push steps are recorded and reported together at the end, while
	staging failures follow the configured pathspec error mode.

	"""

	def __init__(
		self,
		inputs: ActionInputs,
		git: GitClient | None = None,
		observer: PipelineObserver | None = None,
		chunk_limit: int = CHUNK_SIZE_LIMIT,
		output_file: str | Path | None = None,
	) -> None:
		"""
		Initialize the orchestrator.

		Args:
		    inputs: Validated run configuration
		    git: Git client, defaults to one bound to ``inputs.cwd``
		    observer: Receives step notifications, defaults to logging
		    chunk_limit: Maximum cumulative size of a commit in bytes
		    output_file: Where outputs are written, defaults to ``$GITHUB_OUTPUT``

		"""
		self.inputs = inputs
		self.git = git or GitClient(inputs.cwd)
		self.observer = observer or LoggingObserver()
		self.chunk_limit = chunk_limit
		self.output_file = output_file
		self.accumulator = ErrorAccumulator()
		self.result = RunResult()
		self.state = RunState.PENDING
		self.stager = ChangeSetStager(self.git, inputs.error_mode, self.accumulator)

	async def _git(self, func: Callable[..., T], *args: Any) -> T:  # noqa: ANN401
		return await asyncio.to_thread(func, *args)

	async def run(self) -> RunResult:
		"""
		Execute the pipeline and publish its outputs.

		Returns:
		    The collected run facts

		Raises:
		    ConflictError: If pulling left conflicting files
		    GitError: If a step that cannot be tolerated failed
		    AggregateError: If several deferred errors were recorded

		"""
		logger.info("Running in %s", self.inputs.cwd)
		try:
			await self._run_steps()
			self.observer.step_started(PipelineStep.REPORT)
			self.accumulator.drain()
			if self.state is RunState.PENDING:
				self.state = RunState.DONE
		except ConflictError:
			self.state = RunState.CONFLICTED
			raise
		except Exception:
			self.state = RunState.FAILED
			raise
		finally:
			publish_outputs(self.result, self.output_file)
		return self.result

	async def _run_steps(self) -> None:
		await self._prepare()
		if not await self._detect():
			self.state = RunState.CLEAN
			return

		await self._configure_identity()
		fetched = await self._fetch()
		await self._checkout(fetched=fetched)
		await self._pull()

		files = await self._snapshot()
		self.observer.step_started(PipelineStep.CHUNK)
		chunks = build_chunks(files, self.chunk_limit)
		self.observer.step_finished(PipelineStep.CHUNK, f"Built {len(chunks)} chunk(s) from {len(files)} file(s).")

		await self._commit_chunks(chunks, files)
		await self._tag(fetched=fetched)
		await self._push()
		logger.info("> Task completed.")

	async def _prepare(self) -> None:
		if not (self.inputs.add or self.inputs.remove):
			self.observer.step_skipped(PipelineStep.PREPARE, "No pathspecs to add or remove.")
			return
		self.observer.step_started(PipelineStep.PREPARE)
		await self._apply_pathspecs()
		self.observer.step_finished(PipelineStep.PREPARE)

	async def _apply_pathspecs(self) -> None:
		if self.inputs.add:
			await self.stager.add_pathspecs(self.inputs.add)
		if self.inputs.remove:
			await self.stager.remove_pathspecs(self.inputs.remove)

	async def _detect(self) -> bool:
		self.observer.step_started(PipelineStep.DETECT)
		snapshot = await self._git(self.git.status)
		changed = len(snapshot.files)
		logger.debug("--allow-empty argument detected: %s", self.inputs.allow_empty)

		if changed == 0 and not self.inputs.allow_empty:
			self.observer.step_skipped(PipelineStep.DETECT, "Working tree clean. Nothing to commit.")
			return False

		self.observer.step_finished(PipelineStep.DETECT, f"Found {changed} changed files.")
		return True

	async def _configure_identity(self) -> None:
		self.observer.step_started(PipelineStep.CONFIGURE_IDENTITY)
		inputs = self.inputs
		for key, value in (
			("user.email", inputs.author_email),
			("user.name", inputs.author_name),
			("author.email", inputs.author_email),
			("author.name", inputs.author_name),
			("committer.email", inputs.committer_email),
			("committer.name", inputs.committer_name),
		):
			await self._git(self.git.add_config, key, value)

		if logger.isEnabledFor(logging.DEBUG):
			config = await self._git(self.git.list_config)
			logger.debug("> Current git config\n%s", json.dumps(config, indent=2))
		self.observer.step_finished(PipelineStep.CONFIGURE_IDENTITY)

	async def _fetch(self) -> bool:
		if not self.inputs.fetch.enabled:
			self.observer.step_skipped(PipelineStep.FETCH, "Not fetching repo.")
			return False
		self.observer.step_started(PipelineStep.FETCH)
		await self._git(self.git.fetch, self.inputs.fetch.arg_list())
		self.observer.step_finished(PipelineStep.FETCH)
		return True

	async def _checkout(self, *, fetched: bool) -> None:
		branch = self.inputs.new_branch
		if not branch:
			self.observer.step_skipped(PipelineStep.CHECKOUT, "No branch to check out.")
			return

		self.observer.step_started(PipelineStep.CHECKOUT)
		if not fetched:
			logger.warning(FETCH_WARNING.format(action="Creating a new branch"))

		try:
			await self._git(self.git.checkout, branch)
		except GitError:
			logger.info("Creating '%s' branch.", branch)
			await self._git(self.git.checkout_new_branch, branch)
			self.observer.step_finished(PipelineStep.CHECKOUT, f"Created branch '{branch}'.")
		else:
			self.observer.step_finished(PipelineStep.CHECKOUT, f"'{branch}' branch already existed.")

	async def _pull(self) -> None:
		if self.inputs.pull_args is None:
			self.observer.step_skipped(PipelineStep.PULL, "Not pulling from repo.")
			return

		self.observer.step_started(PipelineStep.PULL)
		logger.debug("Current git pull arguments: %s", self.inputs.pull_args)
		await self._git(self.git.fetch, [])
		await self._git(self.git.pull, self.inputs.pull_args)

		logger.info("> Checking for conflicts...")
		snapshot = await self._git(self.git.status)
		if snapshot.conflicted:
			error = ConflictError(snapshot.conflicted)
			self.observer.step_failed(PipelineStep.PULL, error)
			raise error

		await self._apply_pathspecs()
		self.observer.step_finished(PipelineStep.PULL, "No conflicts found.")

	async def _snapshot(self) -> list[ChangedFile]:
		self.observer.step_started(PipelineStep.SNAPSHOT)
		snapshot = await self._git(self.git.status)
		files = await size_changed_files(snapshot.files, self.inputs.cwd)
		# A file kept on disk by "git rm --cached" also shows up as untracked
		staged_deletions = {f.path for f in files if f.index_status is FileStatus.DELETED}
		files = [f for f in files if not (f.working_status is FileStatus.UNTRACKED and f.path in staged_deletions)]
		self.observer.step_finished(PipelineStep.SNAPSHOT)
		return files

	async def _commit_chunks(self, chunks: list[Chunk], files: list[ChangedFile]) -> None:
		self.observer.step_started(PipelineStep.COMMIT)

		if not chunks and self.inputs.allow_empty:
			await self._commit(None)

		if chunks:
			# Whatever earlier steps staged is restaged chunk by chunk
			await self._git(self.git.reset_index)

		by_path = {f.path: f for f in files}
		for index, chunk in enumerate(chunks):
			logger.info("> Committing chunk %d, count: %d, size: %d", index, len(chunk.files), chunk.total_size)
			await self.stager.stage(chunk, by_path)
			await self._commit(index)

		self.observer.step_finished(PipelineStep.COMMIT, f"Created {len(self.result.commit_shas)} commit(s).")

	async def _commit(self, index: int | None) -> None:
		try:
			data = await self._git(self.git.commit, self.inputs.message, self.inputs.commit_args)
		except GitError as e:
			label = "empty commit" if index is None else f"chunk {index}"
			self.accumulator.add(f"Commit of {label} failed: {e}", StepKind.COMMIT, e)
			self.observer.step_failed(PipelineStep.COMMIT, e)
			return

		logger.debug("%s", data.summary)
		self.result.record_commit(data.commit)

	async def _tag(self, *, fetched: bool) -> None:
		if self.inputs.tag_args is None:
			self.observer.step_skipped(PipelineStep.TAG, "No tag info provided.")
			return

		self.observer.step_started(PipelineStep.TAG)
		if not fetched:
			logger.warning(FETCH_WARNING.format(action="Creating a tag"))

		try:
			await self._git(self.git.tag, self.inputs.tag_args)
		except GitError as e:
			self.accumulator.add(f"Tagging failed: {e}", StepKind.TAG, e)
			self.observer.step_failed(PipelineStep.TAG, e)
			return

		self.result.tagged = True
		self.observer.step_finished(PipelineStep.TAG)

	async def _push(self) -> None:
		push = self.inputs.push
		if not push.enabled:
			self.observer.step_skipped(PipelineStep.PUSH, "Not pushing anything.")
			return

		self.observer.step_started(PipelineStep.PUSH)
		await self._push_commits(push.arg_list())

		if self.inputs.tag_args is not None:
			logger.info("> Pushing tags to repo...")
			try:
				await self._git(self.git.push_tags, self.inputs.remote, self.inputs.tag_push_args)
			except GitError as e:
				self.accumulator.add(f"Pushing tags failed: {e}", StepKind.TAG_PUSH, e)
				self.observer.step_failed(PipelineStep.PUSH, e)
			else:
				self.result.tag_pushed = True
		else:
			logger.info("> No tags to push.")

		self.observer.step_finished(PipelineStep.PUSH)

	async def _push_commits(self, extra_args: list[str]) -> None:
		"""Push every commit separately so each chunk reaches the remote on its own."""
		if not self.result.commit_shas:
			logger.info("> No commits to push.")
			return

		try:
			branch = self.inputs.new_branch or await self._git(self.git.rev_parse, ["--abbrev-ref", "HEAD"])
		except GitError as e:
			self.accumulator.add(f"Could not determine the branch to push: {e}", StepKind.PUSH, e)
			self.observer.step_failed(PipelineStep.PUSH, e)
			return

		for sha in self.result.commit_shas:
			refspec = f"{sha}:refs/heads/{branch}"
			logger.debug("Running: git push %s %s", self.inputs.remote, refspec)
			try:
				await self._git(self.git.push, self.inputs.remote, refspec, ["--set-upstream", *extra_args])
			except GitError as e:
				# Later commits contain this one, pushing them would fail the same way
				self.accumulator.add(f"Pushing {refspec} failed: {e}", StepKind.PUSH, e)
				self.observer.step_failed(PipelineStep.PUSH, e)
				return
			self.result.pushed = True
