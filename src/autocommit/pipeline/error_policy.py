"""
Error tolerance for staging operations.

A "pathspec miss" is an add or remove whose pattern matched nothing in the
working tree. Depending on the configured mode such a failure is swallowed,
raised straight away, or recorded and reported once the run is over. Every
other failure is raised straight away.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from autocommit.git.utils import GitError

logger = logging.getLogger(__name__)

PATHSPEC_MARKER = "fatal: pathspec"
NO_MATCH_MARKER = "did not match any files"


class ErrorMode(str, Enum):
	"""How pathspec misses are tolerated."""

	IGNORE = "ignore"
	FAIL_FAST = "exitImmediately"
	ACCUMULATE = "exitAtEnd"


class PolicyAction(Enum):
	"""What to do with a failed staging operation."""

	SUPPRESS = "suppress"
	RAISE_NOW = "raise_now"
	DEFER = "defer"


class StepKind(str, Enum):
	"""Pipeline step an error record originates from."""

	PATHSPEC = "pathspec"
	COMMIT = "commit"
	TAG = "tag"
	PUSH = "push"
	TAG_PUSH = "tag_push"


class AutocommitError(Exception):
	"""Base class for failures reported by a run."""


class PathspecMissError(GitError, AutocommitError):
	"""An add or remove matched no files."""


class ConflictError(AutocommitError):
	"""Pulling left conflicting paths in the working tree."""

	def __init__(self, paths: list[str]) -> None:
		"""Initialize with every conflicting path."""
		self.paths = list(paths)
		super().__init__(f"There are {len(self.paths)} conflicting files: {', '.join(self.paths)}")


class AggregateError(AutocommitError):
	"""More than one deferred error was recorded during the run."""

	def __init__(self, errors: list[Exception]) -> None:
		"""Initialize with the drained errors."""
		self.errors = list(errors)
		super().__init__("There have been multiple runtime errors.")


@dataclass(frozen=True)
class ErrorRecord:
	"""A failure held back until the end of the run."""

	message: str
	kind: StepKind = StepKind.PATHSPEC
	error: Exception | None = None

	def as_exception(self) -> Exception:
		"""Return the error to raise for this record."""
		return self.error if self.error is not None else AutocommitError(self.message)


@dataclass
class ErrorAccumulator:
	"""Deferred errors of a single run, drained exactly once."""

	records: list[ErrorRecord] = field(default_factory=list)
	drained: bool = False

	def add(self, message: str, kind: StepKind = StepKind.PATHSPEC, error: Exception | None = None) -> None:
		"""Record an error for end-of-run reporting."""
		if self.drained:
			msg = "Cannot record errors after the accumulator was drained"
			raise RuntimeError(msg)
		logger.debug("Deferring %s error: %s", kind.value, message)
		self.records.append(ErrorRecord(message=message, kind=kind, error=error))

	def __len__(self) -> int:
		return len(self.records)

	def drain(self) -> None:
		"""
		Report the recorded errors.

		Raises:
		    Exception: The single recorded error when there is exactly one
		    AggregateError: When two or more errors were recorded

		"""
		if self.drained:
			msg = "Error accumulator already drained"
			raise RuntimeError(msg)
		self.drained = True

		records, self.records = self.records, []
		if not records:
			return
		if len(records) == 1:
			raise records[0].as_exception()

		for record in records:
			logger.error("%s", record.message)
		raise AggregateError([record.as_exception() for record in records])


def is_pathspec_miss(error: BaseException) -> bool:
	"""Check whether an error means a pathspec matched no files."""
	text = str(error)
	if isinstance(error, GitError) and error.stderr:
		text = f"{text}\n{error.stderr}"
	return PATHSPEC_MARKER in text and NO_MATCH_MARKER in text


def resolve(mode: ErrorMode, pathspec_miss: bool) -> PolicyAction:
	"""
	Decide how a failed add or remove is handled.

	Args:
	    mode: Configured tolerance mode
	    pathspec_miss: Whether the failure is a pathspec miss

	Returns:
	    The action to take

	"""
	if not pathspec_miss:
		return PolicyAction.RAISE_NOW
	if mode is ErrorMode.IGNORE:
		return PolicyAction.SUPPRESS
	if mode is ErrorMode.ACCUMULATE:
		return PolicyAction.DEFER
	return PolicyAction.RAISE_NOW


def apply_policy(error: GitError, mode: ErrorMode, accumulator: ErrorAccumulator, description: str) -> None:
	"""
	Handle a failed add or remove according to the tolerance mode.

	Args:
	    error: The failure raised by git
	    mode: Configured tolerance mode
	    accumulator: Where deferred errors are recorded
	    description: Message naming the failed command, used for pathspec misses

	Raises:
	    GitError: The original error when it is not a pathspec miss
	    PathspecMissError: For a pathspec miss in fail-fast mode

	"""
	pathspec_miss = is_pathspec_miss(error)
	action = resolve(mode, pathspec_miss)

	if action is PolicyAction.SUPPRESS:
		logger.info("Ignoring pathspec error: %s", description)
		return
	if not pathspec_miss:
		raise error

	wrapped = PathspecMissError(description, stderr=error.stderr)
	if action is PolicyAction.DEFER:
		accumulator.add(description, StepKind.PATHSPEC, wrapped)
		return
	raise wrapped from error
