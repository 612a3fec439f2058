"""Parsing helpers for git argument strings supplied as configuration inputs."""

from __future__ import annotations

import logging
import shlex

import yaml

logger = logging.getLogger(__name__)


class ArgumentParseError(ValueError):
	"""Raised when an argument string cannot be tokenized."""


def match_git_args(value: str | None) -> list[str]:
	"""
	Tokenize a shell-style argument string into a list of git arguments.

	Quoted segments are kept together and their quotes removed, so
	``-m "first line" --allow-empty`` becomes
	``["-m", "first line", "--allow-empty"]``.

	Args:
	    value: The raw argument string (``None`` or blank gives no arguments)

	Returns:
	    The list of tokens

	Raises:
	    ArgumentParseError: If the string has unbalanced quotes

	"""
	if not value or not value.strip():
		return []
	try:
		return shlex.split(value)
	except ValueError as e:
		msg = f"Invalid argument string {value!r}: {e}"
		raise ArgumentParseError(msg) from e


def parse_input_array(value: str | list[str] | None) -> list[str]:
	"""
	Parse an input that may hold one argument string or a list of them.

	Lists may be written as YAML or JSON (``["a", "b --force"]``); anything
	else is treated as a single entry.

	Args:
	    value: Raw input value

	Returns:
	    List of argument strings, empty entries removed

	"""
	if value is None:
		return []
	if isinstance(value, list):
		return [str(item) for item in value if str(item).strip()]

	stripped = value.strip()
	if not stripped:
		return []

	if stripped.startswith("["):
		try:
			parsed = yaml.safe_load(stripped)
		except yaml.YAMLError:
			logger.debug("Input %r looks like a list but is not valid YAML, using it verbatim", stripped)
		else:
			if isinstance(parsed, list):
				return [str(item) for item in parsed if str(item).strip()]

	return [stripped]
