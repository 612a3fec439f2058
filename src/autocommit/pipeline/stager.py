"""Staging of chunks and configured pathspecs."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from autocommit.git.args import match_git_args
from autocommit.git.utils import FileStatus, GitClient, GitError

from .error_policy import ErrorAccumulator, ErrorMode, apply_policy

if TYPE_CHECKING:
	from collections.abc import Mapping

	from .chunker import Chunk
	from .sizing import ChangedFile

logger = logging.getLogger(__name__)


def split_chunk(chunk: Chunk, files: Mapping[str, ChangedFile]) -> tuple[list[str], list[str]]:
	"""
	Split the paths of a chunk into paths to add and paths to drop from the index.

	A staged deletion is dropped rather than added. The source path of a
	staged rename is dropped together with the new path being added.

	Returns:
	    Paths to add and paths to remove, each in chunk order

	"""
	additions: list[str] = []
	removals: list[str] = []
	for path in chunk.files:
		entry = files.get(path)
		if entry is not None and entry.index_status is FileStatus.DELETED:
			removals.append(path)
			continue
		additions.append(path)
		if entry is not None and entry.index_status is FileStatus.RENAMED and entry.original_path:
			removals.append(entry.original_path)
	return additions, removals


class ChangeSetStager:
	"""Runs add and remove operations under the configured error mode."""

	def __init__(self, git: GitClient, mode: ErrorMode, accumulator: ErrorAccumulator) -> None:
		"""
		Initialize the stager.

		Args:
		    git: Client for the repository being committed
		    mode: Tolerance mode for pathspec misses
		    accumulator: Collects errors deferred by the ``exitAtEnd`` mode

		"""
		self.git = git
		self.mode = mode
		self.accumulator = accumulator

	async def stage(self, chunk: Chunk, files: Mapping[str, ChangedFile] | None = None) -> None:
		"""
		Stage every file of a chunk.

		Paths are added with a single ``git add``. Deletions that were already
		staged in the snapshot are dropped from the index instead, since
		there is nothing left to add for them.

		Args:
		    chunk: The chunk to stage
		    files: Snapshot entries by path, used to tell deletions and renames apart

		Raises:
		    GitError: When the failure is not tolerated by the error mode

		"""
		additions, removals = split_chunk(chunk, files or {})
		if additions:
			try:
				await asyncio.to_thread(self.git.add_paths, additions)
			except GitError as e:
				description = f"Add command did not match any file: git add {' '.join(additions)}"
				apply_policy(e, self.mode, self.accumulator, description)
		if removals:
			try:
				await asyncio.to_thread(self.git.remove_cached, removals)
			except GitError as e:
				description = f"Remove command did not match any file:\n  git rm --cached {' '.join(removals)}"
				apply_policy(e, self.mode, self.accumulator, description)

	async def add_pathspecs(self, specs: list[str]) -> None:
		"""Run ``git add`` once per configured argument string, in order."""
		for spec in specs:
			try:
				await asyncio.to_thread(self.git.add, match_git_args(spec))
			except GitError as e:
				apply_policy(e, self.mode, self.accumulator, f"Add command did not match any file: git add {spec}")

	async def remove_pathspecs(self, specs: list[str]) -> None:
		"""Run ``git rm`` once per configured argument string, in order."""
		for spec in specs:
			try:
				await asyncio.to_thread(self.git.rm, match_git_args(spec))
			except GitError as e:
				apply_policy(e, self.mode, self.accumulator, f"Remove command did not match any file:\n  git rm {spec}")
