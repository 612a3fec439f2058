"""Tests for staging chunks and configured pathspecs."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from autocommit.git.utils import FileStatus, GitError
from autocommit.pipeline.chunker import Chunk
from autocommit.pipeline.error_policy import ErrorAccumulator, ErrorMode, PathspecMissError
from autocommit.pipeline.sizing import ChangedFile
from autocommit.pipeline.stager import ChangeSetStager, split_chunk

PATHSPEC_STDERR = "fatal: pathspec 'b.txt' did not match any files"


def make_stager(git: MagicMock, mode: ErrorMode) -> tuple[ChangeSetStager, ErrorAccumulator]:
	accumulator = ErrorAccumulator()
	return ChangeSetStager(git, mode, accumulator), accumulator


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stage_adds_whole_chunk_in_one_call(mock_git: MagicMock) -> None:
	"""Test that every path of a chunk goes into a single git add."""
	stager, accumulator = make_stager(mock_git, ErrorMode.FAIL_FAST)

	await stager.stage(Chunk(files=["a.txt", "b.txt"], total_size=2))

	mock_git.add_paths.assert_called_once_with(["a.txt", "b.txt"])
	assert len(accumulator) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stage_accumulates_pathspec_miss(mock_git: MagicMock) -> None:
	"""Test that exitAtEnd records the miss and lets staging continue."""
	mock_git.add_paths.side_effect = GitError("git add failed", stderr=PATHSPEC_STDERR)
	stager, accumulator = make_stager(mock_git, ErrorMode.ACCUMULATE)

	await stager.stage(Chunk(files=["a.txt", "b.txt"], total_size=2))

	assert len(accumulator) == 1
	assert accumulator.records[0].message == "Add command did not match any file: git add a.txt b.txt"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stage_fail_fast_raises(mock_git: MagicMock) -> None:
	"""Test that exitImmediately raises on the first miss."""
	mock_git.add_paths.side_effect = GitError("git add failed", stderr=PATHSPEC_STDERR)
	stager, _ = make_stager(mock_git, ErrorMode.FAIL_FAST)

	with pytest.raises(PathspecMissError):
		await stager.stage(Chunk(files=["b.txt"], total_size=1))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stage_non_pathspec_error_raises_in_ignore_mode(mock_git: MagicMock) -> None:
	"""Test that ignore mode only tolerates pathspec misses."""
	mock_git.add_paths.side_effect = GitError("fatal: Unable to create '.git/index.lock': File exists.")
	stager, _ = make_stager(mock_git, ErrorMode.IGNORE)

	with pytest.raises(GitError, match="index.lock"):
		await stager.stage(Chunk(files=["a.txt"], total_size=1))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_pathspecs_tokenizes_each_entry(mock_git: MagicMock) -> None:
	"""Test that each configured add entry becomes one git add call."""
	stager, _ = make_stager(mock_git, ErrorMode.IGNORE)

	await stager.add_pathspecs(["src", "'docs/my file.md' --force"])

	assert [call.args[0] for call in mock_git.add.call_args_list] == [
		["src"],
		["docs/my file.md", "--force"],
	]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_remove_pathspecs_accumulates_message(mock_git: MagicMock) -> None:
	"""Test the message recorded for a remove that matched nothing."""
	mock_git.rm.side_effect = [GitError("git rm failed", stderr=PATHSPEC_STDERR), "rm 'c.txt'"]
	stager, accumulator = make_stager(mock_git, ErrorMode.ACCUMULATE)

	await stager.remove_pathspecs(["b.txt", "c.txt"])

	assert mock_git.rm.call_count == 2
	assert accumulator.records[0].message == "Remove command did not match any file:\n  git rm b.txt"


def changed(path: str, index: FileStatus, working: FileStatus, original_path: str | None = None) -> ChangedFile:
	return ChangedFile(path=path, working_status=working, index_status=index, size=1, original_path=original_path)


@pytest.mark.unit
def test_split_chunk_routes_deletions_and_renames() -> None:
	"""Test that staged deletions are removed and rename sources follow their target."""
	files = {
		"old.txt": changed("old.txt", FileStatus.DELETED, FileStatus.UNMODIFIED),
		"new.txt": changed("new.txt", FileStatus.RENAMED, FileStatus.UNMODIFIED, original_path="moved.txt"),
		"gone.txt": changed("gone.txt", FileStatus.UNMODIFIED, FileStatus.DELETED),
		"-n": changed("-n", FileStatus.UNTRACKED, FileStatus.UNTRACKED),
	}
	chunk = Chunk(files=["old.txt", "new.txt", "gone.txt", "-n"], total_size=4)

	additions, removals = split_chunk(chunk, files)

	assert additions == ["new.txt", "gone.txt", "-n"]
	assert removals == ["old.txt", "moved.txt"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stage_drops_staged_deletion_from_index(mock_git: MagicMock) -> None:
	"""Test that a staged deletion never reaches git add and the rest is still staged."""
	files = {
		"old.txt": changed("old.txt", FileStatus.DELETED, FileStatus.UNMODIFIED),
		"README.md": changed("README.md", FileStatus.UNMODIFIED, FileStatus.MODIFIED),
	}
	stager, accumulator = make_stager(mock_git, ErrorMode.FAIL_FAST)

	await stager.stage(Chunk(files=["old.txt", "README.md"], total_size=2), files)

	mock_git.add_paths.assert_called_once_with(["README.md"])
	mock_git.remove_cached.assert_called_once_with(["old.txt"])
	assert len(accumulator) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stage_only_deletions_skips_add(mock_git: MagicMock) -> None:
	"""Test that a chunk of staged deletions makes no git add call."""
	files = {"old.txt": changed("old.txt", FileStatus.DELETED, FileStatus.UNMODIFIED)}
	stager, _ = make_stager(mock_git, ErrorMode.FAIL_FAST)

	await stager.stage(Chunk(files=["old.txt"], total_size=0), files)

	mock_git.add_paths.assert_not_called()
	mock_git.remove_cached.assert_called_once_with(["old.txt"])
