"""Notifications emitted at pipeline step boundaries."""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class PipelineStep(str, Enum):
	"""Steps of the commit pipeline, in execution order."""

	PREPARE = "prepare"
	DETECT = "detect"
	CONFIGURE_IDENTITY = "configure_identity"
	FETCH = "fetch"
	CHECKOUT = "checkout"
	PULL = "pull"
	SNAPSHOT = "snapshot"
	CHUNK = "chunk"
	COMMIT = "commit"
	TAG = "tag"
	PUSH = "push"
	REPORT = "report"


STEP_TITLES = {
	PipelineStep.PREPARE: "Staging configured pathspecs",
	PipelineStep.DETECT: "Checking for changes in the git working tree",
	PipelineStep.CONFIGURE_IDENTITY: "Configuring commit identity",
	PipelineStep.FETCH: "Fetching repo",
	PipelineStep.CHECKOUT: "Checking-out branch",
	PipelineStep.PULL: "Pulling from remote",
	PipelineStep.SNAPSHOT: "Checking file(s)",
	PipelineStep.CHUNK: "Building chunk(s)",
	PipelineStep.COMMIT: "Creating commit(s)",
	PipelineStep.TAG: "Tagging commit",
	PipelineStep.PUSH: "Pushing to repo",
	PipelineStep.REPORT: "Reporting results",
}


class PipelineObserver:
	"""Base observer; every hook is a no-op."""

	def step_started(self, step: PipelineStep) -> None:
		"""Called before a step runs."""

	def step_finished(self, step: PipelineStep, detail: str = "") -> None:
		"""Called after a step completed without raising."""

	def step_skipped(self, step: PipelineStep, reason: str) -> None:
		"""Called when a step is not enabled for this run."""

	def step_failed(self, step: PipelineStep, error: BaseException) -> None:
		"""Called when a step raised or recorded a failure."""


class LoggingObserver(PipelineObserver):
	"""Writes step progress to the log."""

	def step_started(self, step: PipelineStep) -> None:
		"""Log the step title."""
		logger.info("> %s...", STEP_TITLES[step])

	def step_finished(self, step: PipelineStep, detail: str = "") -> None:
		"""Log the step outcome when there is something to say."""
		if detail:
			logger.info("> %s", detail)

	def step_skipped(self, step: PipelineStep, reason: str) -> None:
		"""Log why the step did not run."""
		logger.info("> %s", reason)

	def step_failed(self, step: PipelineStep, error: BaseException) -> None:
		"""Log the failure as an error."""
		logger.error("%s failed: %s", STEP_TITLES[step], error)
