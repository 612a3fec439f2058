"""Command-line interface for autocommit."""

from __future__ import annotations

import datetime
import logging
import sys
from pathlib import Path
from typing import Annotated

import asyncer
import typer

from autocommit import __version__
from autocommit.utils.log_setup import display_error_summary, setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
	help=f"Autocommit - commit and push working-tree changes from CI\n\nVersion: {__version__}",
	no_args_is_help=True,
	context_settings={"help_option_names": ["-h", "--help"]},
)


def _version_callback(value: bool) -> None:
	"""Callback for --version option."""
	if value:
		typer.echo(f"autocommit version: {__version__}")
		raise typer.Exit


@app.callback()
def global_options(
	ctx: typer.Context,
	is_verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging.")] = False,
	is_output_log: Annotated[
		bool,
		typer.Option(
			"--save-log",
			help="Enable logging to a file. Logs to logs/autocommit_{datetime}.log.",
		),
	] = False,
	_version: Annotated[
		bool | None,
		typer.Option("--version", help="Show version and exit.", callback=_version_callback, is_eager=True),
	] = None,
) -> None:
	"""Global CLI options and logging setup."""
	ctx.meta["is_verbose"] = is_verbose

	log_file_path: Path | None = None
	if is_output_log:
		current_time = datetime.datetime.now(tz=datetime.UTC).strftime("%Y-%m-%d_%H-%M-%S")
		log_file_path = Path("logs") / f"autocommit_{current_time}.log"

	setup_logging(is_verbose=is_verbose, log_file_path=log_file_path)


ConfigOption = Annotated[
	Path | None,
	typer.Option("--config", "-c", help="YAML configuration file", dir_okay=False),
]
CwdOption = Annotated[
	Path | None,
	typer.Option("--cwd", help="Repository directory (overrides the 'cwd' input)", file_okay=False),
]
MessageOption = Annotated[str | None, typer.Option("--message", "-m", help="Commit message")]
NoPushFlag = Annotated[bool, typer.Option("--no-push", help="Commit without pushing")]


@app.command(name="run")
@asyncer.runnify
async def run_command(
	config: ConfigOption = None,
	cwd: CwdOption = None,
	message: MessageOption = None,
	no_push: NoPushFlag = False,
) -> None:
	"""
	Commit pending changes in size-bounded chunks and push them.

	Inputs are read from the config file and from INPUT_<NAME> or
	AUTOCOMMIT_<NAME> environment variables.

	"""
	overrides: dict[str, str | None] = {
		"cwd": str(cwd) if cwd else None,
		"message": message,
		"push": "false" if no_push else None,
	}
	await _run_command_impl(config, overrides)


async def _run_command_impl(config_file: Path | None, overrides: dict[str, str | None]) -> None:
	"""Load inputs, run the pipeline and map failures to the exit code."""
	from autocommit.git.utils import GitError, get_repo_root
	from autocommit.pipeline.error_policy import AggregateError, AutocommitError
	from autocommit.pipeline.orchestrator import CommitOrchestrator
	from autocommit.utils.config_loader import ConfigError, ConfigLoader

	try:
		inputs = ConfigLoader(config_file, overrides=overrides).inputs()
	except ConfigError as e:
		display_error_summary(f"Invalid configuration: {e}")
		raise typer.Exit(1) from e

	try:
		repo_root = get_repo_root(inputs.cwd)
	except GitError as e:
		display_error_summary(str(e))
		raise typer.Exit(1) from e
	logger.debug("Repository root: %s", repo_root)

	orchestrator = CommitOrchestrator(inputs)
	try:
		await orchestrator.run()
	except KeyboardInterrupt:
		typer.echo("Operation cancelled by user.", err=True)
		raise typer.Exit(130) from None
	except AggregateError as e:
		details = "\n".join(f"- {error}" for error in e.errors)
		display_error_summary(f"{e}\n\n{details}")
		raise typer.Exit(1) from e
	except (AutocommitError, GitError) as e:
		display_error_summary(str(e))
		raise typer.Exit(1) from e

	logger.debug("Run finished in state %s", orchestrator.state.value)


def main() -> int:
	"""Run the CLI application."""
	return app()


if __name__ == "__main__":
	sys.exit(main())
