"""
Configuration loader for autocommit.

Values are layered in increasing priority: built-in defaults, a YAML
config file, environment variables (``INPUT_<NAME>`` as set by CI action
runners, then ``AUTOCOMMIT_<NAME>``) and finally explicit overrides passed
by the CLI. ``ConfigLoader.inputs()`` validates the merged values into an
immutable ``ActionInputs``.

"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from xdg.BaseDirectory import xdg_config_home

from autocommit.config import DEFAULT_CONFIG, ENV_PREFIXES, GITHUB_ACTIONS_BOT_EMAIL, GITHUB_ACTIONS_BOT_NAME
from autocommit.git.args import ArgumentParseError, match_git_args, parse_input_array
from autocommit.pipeline.error_policy import ErrorMode

logger = logging.getLogger(__name__)

TRUE_VALUES = ("true", "yes", "1")
FALSE_VALUES = ("false", "no", "0", "")


class ConfigError(Exception):
	"""Exception raised for configuration errors."""


class ToggleState(Enum):
	"""Variant tag of a Toggle."""

	DISABLED = "disabled"
	ENABLED = "enabled"
	ENABLED_WITH_ARGS = "enabled_with_args"


@dataclass(frozen=True)
class Toggle:
	"""An input that is either off, on, or on with extra arguments."""

	state: ToggleState
	args: str = ""

	@classmethod
	def parse(cls, value: str | bool | None) -> Toggle:
		"""
		Resolve a bool-or-arguments input.

		``true``/``false`` style values toggle the feature; any other string
		enables it and is kept as its argument string.

		"""
		if value is None or value is False:
			return cls(ToggleState.DISABLED)
		if value is True:
			return cls(ToggleState.ENABLED)

		text = str(value).strip()
		if text.lower() in FALSE_VALUES:
			return cls(ToggleState.DISABLED)
		if text.lower() in TRUE_VALUES:
			return cls(ToggleState.ENABLED)
		return cls(ToggleState.ENABLED_WITH_ARGS, text)

	@property
	def enabled(self) -> bool:
		"""Whether the feature runs at all."""
		return self.state is not ToggleState.DISABLED

	def arg_list(self) -> list[str]:
		"""Tokenized extra arguments, empty unless ENABLED_WITH_ARGS."""
		return match_git_args(self.args) if self.state is ToggleState.ENABLED_WITH_ARGS else []


@dataclass(frozen=True)
class ActionInputs:
	"""Validated inputs of one run."""

	cwd: Path
	author_name: str
	author_email: str
	committer_name: str
	committer_email: str
	message: str
	commit_args: list[str] = field(default_factory=list)
	fetch: Toggle = field(default_factory=lambda: Toggle(ToggleState.ENABLED))
	pull_args: list[str] | None = None
	new_branch: str | None = None
	tag_args: list[str] | None = None
	tag_push_args: list[str] = field(default_factory=list)
	push: Toggle = field(default_factory=lambda: Toggle(ToggleState.ENABLED))
	remote: str = "origin"
	add: list[str] = field(default_factory=list)
	remove: list[str] = field(default_factory=list)
	error_mode: ErrorMode = ErrorMode.IGNORE

	@property
	def allow_empty(self) -> bool:
		"""Whether the commit arguments allow committing a clean tree."""
		return "--allow-empty" in self.commit_args


class ConfigLoader:
	"""Loads and validates autocommit configuration."""

	def __init__(
		self,
		config_file: str | Path | None = None,
		overrides: dict[str, Any] | None = None,
		environ: dict[str, str] | None = None,
	) -> None:
		"""
		Initialize the configuration loader.

		Args:
		        config_file: Path to a YAML configuration file (optional)
		        overrides: Values that take precedence over every other source
		        environ: Environment to read overrides from, defaults to ``os.environ``

		"""
		self.environ = dict(os.environ) if environ is None else environ
		self.overrides = {key: value for key, value in (overrides or {}).items() if value is not None}
		self.config: dict[str, Any] = {}
		self.config_file = self._resolve_config_file(config_file)
		self.load_config()

	def _resolve_config_file(self, config_file: str | Path | None = None) -> Path | None:
		"""
		Resolve the configuration file path.

		If a config file is specified, use that. Otherwise, look in:
		1. ./.autocommit.yml in the current directory
		2. $XDG_CONFIG_HOME/autocommit/config.yml

		"""
		if config_file:
			return Path(config_file).expanduser().resolve()

		local_config = Path(".autocommit.yml")
		if local_config.exists():
			return local_config

		xdg_config_file = Path(xdg_config_home) / "autocommit" / "config.yml"
		if xdg_config_file.exists():
			return xdg_config_file

		return None

	def load_config(self) -> dict[str, Any]:
		"""
		Merge defaults, config file, environment and overrides.

		Raises:
		        ConfigError: If the configuration file cannot be read or parsed

		"""
		self.config = dict(DEFAULT_CONFIG)

		if self.config_file:
			if not self.config_file.exists():
				msg = f"Configuration file not found: {self.config_file}"
				raise ConfigError(msg)
			try:
				with self.config_file.open(encoding="utf-8") as f:
					file_config = yaml.safe_load(f)
			except (OSError, yaml.YAMLError) as e:
				error_msg = f"Error loading configuration from {self.config_file}: {e}"
				logger.exception(error_msg)
				raise ConfigError(error_msg) from e

			if file_config is not None and not isinstance(file_config, dict):
				msg = f"Configuration file {self.config_file} must contain a mapping"
				raise ConfigError(msg)
			self._apply_mapping(file_config or {}, source=str(self.config_file))
			logger.info("Loaded configuration from %s", self.config_file)

		self._apply_env_overrides()
		self._apply_mapping(self.overrides, source="command line")
		return self.config

	def _apply_mapping(self, values: dict[str, Any], source: str) -> None:
		for key, value in values.items():
			if key not in DEFAULT_CONFIG:
				logger.warning("Ignoring unknown configuration key %r from %s", key, source)
				continue
			self.config[key] = value

	def _apply_env_overrides(self) -> None:
		"""Apply ``INPUT_<NAME>`` then ``AUTOCOMMIT_<NAME>`` environment overrides."""
		for prefix in ENV_PREFIXES:
			for key in DEFAULT_CONFIG:
				value = self.environ.get(f"{prefix}{key.upper()}")
				if value:
					self.config[key] = value
					logger.debug("Applied environment override %s%s", prefix, key.upper())

	def get(self, key: str, default: Any = None) -> Any:  # noqa: ANN401
		"""Get a raw configuration value."""
		return self.config.get(key, default)

	def _get_str(self, key: str) -> str:
		value = self.config.get(key)
		return "" if value is None else str(value).strip()

	def _optional_args(self, key: str) -> list[str] | None:
		value = self._get_str(key)
		return match_git_args(value) if value else None

	def inputs(self) -> ActionInputs:
		"""
		Validate the merged configuration.

		Returns:
		        ActionInputs: Typed inputs for the pipeline

		Raises:
		        ConfigError: If a value is invalid

		"""
		try:
			return self._build_inputs()
		except ArgumentParseError as e:
			raise ConfigError(str(e)) from e

	def _build_inputs(self) -> ActionInputs:
		author_name, author_email = self._author_identity()

		mode_value = self._get_str("pathspec_error_handling")
		try:
			error_mode = ErrorMode(mode_value)
		except ValueError as e:
			choices = ", ".join(mode.value for mode in ErrorMode)
			msg = f"'{mode_value}' is not a valid value for pathspec_error_handling. Valid values are: {choices}"
			raise ConfigError(msg) from e

		new_branch = self._get_str("new_branch") or None
		if new_branch and any(char.isspace() for char in new_branch):
			msg = f"new_branch must not contain whitespace: {new_branch!r}"
			raise ConfigError(msg)

		remote = self._get_str("remote") or "origin"

		return ActionInputs(
			cwd=Path(self._get_str("cwd") or ".").expanduser().resolve(),
			author_name=author_name,
			author_email=author_email,
			committer_name=self._get_str("committer_name") or author_name,
			committer_email=self._get_str("committer_email") or author_email,
			message=self._get_str("message") or self._default_message(),
			commit_args=match_git_args(self._get_str("commit")),
			fetch=Toggle.parse(self.config.get("fetch")),
			pull_args=self._optional_args("pull"),
			new_branch=new_branch,
			tag_args=self._optional_args("tag"),
			tag_push_args=match_git_args(self._get_str("tag_push")),
			push=Toggle.parse(self.config.get("push")),
			remote=remote,
			add=parse_input_array(self.config.get("add")),
			remove=parse_input_array(self.config.get("remove")),
			error_mode=error_mode,
		)

	def _author_identity(self) -> tuple[str, str]:
		"""Fill missing author name/email according to ``default_author``."""
		name = self._get_str("author_name")
		email = self._get_str("author_email")
		default_author = self._get_str("default_author") or "github_actor"

		if default_author == "github_actor":
			actor = self.environ.get("GITHUB_ACTOR", "")
			if not actor and not (name and email):
				msg = "author_name and author_email are required when GITHUB_ACTOR is not set"
				raise ConfigError(msg)
			name = name or actor
			email = email or f"{actor}@users.noreply.github.com"
		elif default_author == "github_actions":
			name = name or GITHUB_ACTIONS_BOT_NAME
			email = email or GITHUB_ACTIONS_BOT_EMAIL
		else:
			msg = f"'{default_author}' is not a valid value for default_author. Valid values are: github_actor, github_actions"
			raise ConfigError(msg)

		logger.debug("Using author %s <%s>", name, email)
		return name, email

	def _default_message(self) -> str:
		workflow = self.environ.get("GITHUB_WORKFLOW", "")
		return f"Commit from GitHub Actions ({workflow})" if workflow else "Commit from GitHub Actions"
