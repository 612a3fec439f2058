"""Global test fixtures and configuration."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import pytest

from autocommit.git.utils import CommitResult, FileStatus, GitClient, StatusEntry, StatusSnapshot
from autocommit.utils.config_loader import ActionInputs, Toggle, ToggleState

if TYPE_CHECKING:
	from collections.abc import Callable, Iterator


def _snapshot(*paths: str, conflicted: list[str] | None = None) -> StatusSnapshot:
	return StatusSnapshot(
		files=[StatusEntry(path=p, index_status=FileStatus.UNTRACKED, working_status=FileStatus.UNTRACKED) for p in paths],
		conflicted=conflicted or [],
	)


@pytest.fixture
def make_inputs(tmp_path: Path) -> Callable[..., ActionInputs]:
	"""Factory for ActionInputs with CI-like defaults, fetch and push disabled."""

	def _make(**overrides: Any) -> ActionInputs:  # noqa: ANN401
		values: dict[str, Any] = {
			"cwd": tmp_path,
			"author_name": "Test Author",
			"author_email": "author@example.com",
			"committer_name": "Test Author",
			"committer_email": "author@example.com",
			"message": "Automated commit",
			"fetch": Toggle(ToggleState.DISABLED),
			"push": Toggle(ToggleState.DISABLED),
		}
		values.update(overrides)
		return ActionInputs(**values)

	return _make


@pytest.fixture
def mock_git() -> MagicMock:
	"""A GitClient mock whose commits return increasing fake hashes."""
	git = MagicMock(spec=GitClient)
	git.status.return_value = _snapshot()
	git.list_config.return_value = {}
	git.rev_parse.return_value = "main"

	counter = {"n": 0}

	def _commit(message: str, args: list[str] | None = None) -> CommitResult:
		counter["n"] += 1
		return CommitResult(commit=f"{counter['n']:040x}")

	git.commit.side_effect = _commit
	return git


def _git(repo: Path, *args: str) -> str:
	return subprocess.run(  # noqa: S603
		["git", *args],  # noqa: S607
		cwd=repo,
		check=True,
		capture_output=True,
		text=True,
	).stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
	"""A fresh repository with one commit on branch ``main``."""
	repo = tmp_path / "repo"
	repo.mkdir()
	_git(repo, "init", "-q", "-b", "main")
	_git(repo, "config", "user.email", "setup@example.com")
	_git(repo, "config", "user.name", "Setup")
	_git(repo, "config", "commit.gpgsign", "false")
	(repo / "README.md").write_text("hello\n", encoding="utf-8")
	_git(repo, "add", "README.md")
	_git(repo, "commit", "-q", "-m", "initial")
	return repo


@pytest.fixture
def run_git() -> Callable[..., str]:
	"""Run a git command in a directory and return stdout."""
	return _git


@pytest.fixture
def make_snapshot() -> Callable[..., StatusSnapshot]:
	"""Build a status snapshot of untracked files."""
	return _snapshot


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
	"""Undo logging configuration done by CLI tests."""
	root = logging.getLogger()
	level, handlers = root.level, root.handlers[:]
	yield
	root.setLevel(level)
	root.handlers[:] = handlers
