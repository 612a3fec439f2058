"""Tests for publishing run outputs."""

from __future__ import annotations

from pathlib import Path

import pytest

from autocommit.pipeline.outputs import RunResult, publish_outputs


@pytest.mark.unit
def test_outputs_without_commit() -> None:
	"""Test that commit hashes are absent when nothing was committed."""
	assert RunResult().as_outputs() == {
		"committed": "false",
		"tagged": "false",
		"pushed": "false",
		"tag_pushed": "false",
	}


@pytest.mark.unit
def test_outputs_use_last_commit() -> None:
	"""Test that the hashes describe the most recent commit."""
	result = RunResult(pushed=True)
	result.record_commit("a" * 40)
	result.record_commit("0123456789abcdef0123456789abcdef01234567")

	outputs = result.as_outputs()

	assert outputs["committed"] == "true"
	assert outputs["pushed"] == "true"
	assert outputs["commit_sha"] == "0123456"
	assert outputs["commit_long_sha"] == "0123456789abcdef0123456789abcdef01234567"


@pytest.mark.unit
def test_publish_appends_to_github_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
	"""Test that outputs are appended to the file named by GITHUB_OUTPUT."""
	target = tmp_path / "github_output"
	target.write_text("existing=1\n", encoding="utf-8")
	monkeypatch.setenv("GITHUB_OUTPUT", str(target))
	result = RunResult(tagged=True)

	publish_outputs(result)

	assert target.read_text(encoding="utf-8").splitlines() == [
		"existing=1",
		"committed=false",
		"tagged=true",
		"pushed=false",
		"tag_pushed=false",
	]


@pytest.mark.unit
def test_publish_without_target(monkeypatch: pytest.MonkeyPatch) -> None:
	"""Test that outputs are still returned when there is no output file."""
	monkeypatch.delenv("GITHUB_OUTPUT", raising=False)

	assert publish_outputs(RunResult())["committed"] == "false"


@pytest.mark.unit
def test_publish_unwritable_target(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
	"""Test that a write failure is logged instead of failing the run."""
	outputs = publish_outputs(RunResult(), tmp_path / "missing" / "out.txt")

	assert outputs["pushed"] == "false"
	assert "Failed to write outputs" in caplog.text
