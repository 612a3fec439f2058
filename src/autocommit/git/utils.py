"""Git command execution for autocommit."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

# Index/worktree pairs git reports for unmerged paths
CONFLICT_STATES = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})


class GitError(Exception):
	"""Custom exception for Git-related errors."""

	def __init__(self, message: str, stderr: str = "") -> None:
		"""Initialize with the error message and git's stderr output."""
		super().__init__(message)
		self.stderr = stderr


class FileStatus(str, Enum):
	"""Status letter of one side (index or working tree) of a porcelain entry."""

	UNMODIFIED = " "
	MODIFIED = "M"
	TYPE_CHANGED = "T"
	ADDED = "A"
	DELETED = "D"
	RENAMED = "R"
	COPIED = "C"
	UNMERGED = "U"
	UNTRACKED = "?"
	IGNORED = "!"

	@classmethod
	def from_code(cls, code: str) -> FileStatus:
		"""Map a porcelain status letter to a FileStatus, unknown letters count as modified."""
		try:
			return cls(code)
		except ValueError:
			logger.debug("Unknown porcelain status letter %r", code)
			return cls.MODIFIED


@dataclass(frozen=True)
class StatusEntry:
	"""One entry of a porcelain status snapshot."""

	path: str
	index_status: FileStatus
	working_status: FileStatus
	original_path: str | None = None


@dataclass(frozen=True)
class StatusSnapshot:
	"""Working-tree state at one point in time."""

	files: list[StatusEntry] = field(default_factory=list)
	conflicted: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CommitResult:
	"""Result of a successful commit."""

	commit: str
	summary: str = ""


def run_git_command(command: list[str], cwd: Path | None = None) -> str:
	"""
	Run a Git command and return its output.

	Args:
	    command: Git command to run
	    cwd: Working directory (optional)

	Returns:
	    Command output as string

	Raises:
	    GitError: If the command fails or git cannot be started

	"""
	logger.debug("Running: %s", " ".join(command))
	try:
		result = subprocess.run(  # noqa: S603
			command,
			cwd=cwd,
			capture_output=True,
			text=True,
			check=True,
		)
	except subprocess.CalledProcessError as e:
		stderr = (e.stderr or "").strip()
		error_msg = f"Git command failed: {' '.join(command)}\nError: {stderr}"
		logger.debug(error_msg)
		raise GitError(error_msg, stderr=stderr) from e
	except OSError as e:
		error_msg = f"Unable to run git: {e}"
		raise GitError(error_msg) from e
	else:
		return result.stdout


def parse_porcelain(output: str) -> StatusSnapshot:
	"""
	Parse ``git status --porcelain=v1 -z`` output.

	Each record is ``XY path``; rename and copy records are followed by a
	separate field holding the original path.

	Args:
	    output: Raw NUL-separated status output

	Returns:
	    StatusSnapshot with entries in git's order and the unmerged paths

	"""
	files: list[StatusEntry] = []
	conflicted: list[str] = []

	fields = output.split("\0")
	i = 0
	while i < len(fields):
		record = fields[i]
		i += 1
		if len(record) < 4:  # noqa: PLR2004
			continue

		xy, path = record[:2], record[3:]
		original_path = None
		if xy[0] in "RC" or xy[1] in "RC":
			original_path = fields[i] if i < len(fields) else None
			i += 1

		files.append(
			StatusEntry(
				path=path,
				index_status=FileStatus.from_code(xy[0]),
				working_status=FileStatus.from_code(xy[1]),
				original_path=original_path,
			)
		)
		if xy in CONFLICT_STATES:
			conflicted.append(path)

	return StatusSnapshot(files=files, conflicted=conflicted)


class GitClient:
	"""Thin wrapper running git subcommands inside one repository."""

	def __init__(self, repo_path: Path) -> None:
		"""
		Initialize the client.

		Args:
		    repo_path: Directory git commands run in

		"""
		self.repo_path = repo_path

	def _run(self, *args: str) -> str:
		return run_git_command(["git", *args], cwd=self.repo_path)

	def status(self) -> StatusSnapshot:
		"""Take a porcelain status snapshot of the working tree."""
		output = self._run("status", "--porcelain=v1", "-z", "--untracked-files=all")
		return parse_porcelain(output)

	def add_config(self, key: str, value: str) -> None:
		"""Set a repository-local config value."""
		self._run("config", "--local", key, value)

	def list_config(self) -> dict[str, str]:
		"""Return the effective git config as a mapping, later values win."""
		config: dict[str, str] = {}
		for line in self._run("config", "--list").splitlines():
			key, sep, value = line.partition("=")
			if sep:
				config[key] = value
		return config

	def fetch(self, args: list[str] | None = None) -> str:
		"""Fetch from the remote."""
		return self._run("fetch", *(args or []))

	def pull(self, args: list[str] | None = None) -> str:
		"""Pull from the remote."""
		return self._run("pull", *(args or []))

	def checkout(self, branch: str) -> str:
		"""Check out an existing branch."""
		return self._run("checkout", branch)

	def checkout_new_branch(self, branch: str) -> str:
		"""Create and check out a new local branch."""
		return self._run("checkout", "-b", branch)

	def rev_parse(self, args: list[str]) -> str:
		"""Run rev-parse and return its trimmed output."""
		return self._run("rev-parse", *args).strip()

	def add(self, paths: list[str]) -> str:
		"""Stage the given pathspec arguments."""
		return self._run("add", *paths)

	def add_paths(self, paths: list[str]) -> str:
		"""
		Stage exact paths from a status snapshot.

		Paths follow ``--`` so a file named like an option is still a path.
		``--force`` keeps files that a configured add staged past ``.gitignore``.

		"""
		return self._run("add", "--force", "--", *paths)

	def rm(self, paths: list[str]) -> str:
		"""Remove the given pathspec arguments."""
		return self._run("rm", *paths)

	def remove_cached(self, paths: list[str]) -> str:
		"""Drop exact paths from the index, leaving the working tree alone."""
		return self._run("rm", "--cached", "--quiet", "--", *paths)

	def reset_index(self) -> str:
		"""Reset the index to HEAD, keeping working tree changes."""
		return self._run("reset", "--quiet")

	def commit(self, message: str, args: list[str] | None = None) -> CommitResult:
		"""
		Create a commit and return its full hash.

		Args:
		    message: Commit message
		    args: Extra arguments passed to ``git commit``

		Returns:
		    CommitResult holding the new HEAD hash

		Raises:
		    GitError: If the commit or the hash lookup fails

		"""
		summary = self._run("commit", "-m", message, *(args or []))
		sha = self.rev_parse(["HEAD"])
		logger.debug("Created commit %s", sha)
		return CommitResult(commit=sha, summary=summary.strip())

	def tag(self, args: list[str]) -> str:
		"""Create a tag."""
		return self._run("tag", *args)

	def push_tags(self, remote: str, args: list[str] | None = None) -> str:
		"""Push all tags to the remote."""
		return self._run("push", remote, "--tags", *(args or []))

	def push(self, remote: str, refspec: str, options: list[str] | None = None) -> str:
		"""Push a refspec to the remote."""
		return self._run("push", *(options or []), remote, refspec)


def get_repo_root(path: Path | None = None) -> Path:
	"""
	Get the root directory of the Git repository.

	Args:
	    path: Optional path to start searching from

	Returns:
	    Path to repository root

	Raises:
	    GitError: If not in a Git repository

	"""
	try:
		result = run_git_command(["git", "rev-parse", "--show-toplevel"], path)
		return Path(result.strip())
	except GitError as e:
		msg = f"Not in a Git repository: {path or Path.cwd()}"
		raise GitError(msg) from e
