"""Run outputs published at the end of every run."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

SHORT_SHA_LENGTH = 7


@dataclass
class RunResult:
	"""Facts collected while the pipeline runs."""

	committed: bool = False
	commit_shas: list[str] = field(default_factory=list)
	tagged: bool = False
	pushed: bool = False
	tag_pushed: bool = False

	def record_commit(self, sha: str) -> None:
		"""Remember a successful commit."""
		self.committed = True
		self.commit_shas.append(sha)

	@property
	def last_commit(self) -> str | None:
		"""Hash of the most recent commit of this run."""
		return self.commit_shas[-1] if self.commit_shas else None

	def as_outputs(self) -> dict[str, str]:
		"""Render the published outputs as strings."""
		outputs = {
			"committed": _flag(self.committed),
			"tagged": _flag(self.tagged),
			"pushed": _flag(self.pushed),
			"tag_pushed": _flag(self.tag_pushed),
		}
		if self.last_commit:
			outputs["commit_sha"] = self.last_commit[:SHORT_SHA_LENGTH]
			outputs["commit_long_sha"] = self.last_commit
		return outputs


def _flag(value: bool) -> str:
	return "true" if value else "false"


def publish_outputs(result: RunResult, output_file: str | Path | None = None) -> dict[str, str]:
	"""
	Log the run outputs and append them to the CI output file.

	Args:
	    result: Collected run facts
	    output_file: File receiving ``name=value`` lines, defaults to ``$GITHUB_OUTPUT``

	Returns:
	    The published name/value pairs

	"""
	outputs = result.as_outputs()
	logger.info("Outputs:\n%s", "\n".join(f"  {name}: {value}" for name, value in outputs.items()))

	target = output_file or os.environ.get("GITHUB_OUTPUT")
	if target:
		try:
			with Path(target).open("a", encoding="utf-8") as f:
				for name, value in outputs.items():
					f.write(f"{name}={value}\n")
		except OSError:
			logger.exception("Failed to write outputs to %s", target)

	return outputs
