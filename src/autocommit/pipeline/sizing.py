"""File size probing for changed files."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles.os

if TYPE_CHECKING:
	from autocommit.git.utils import FileStatus, StatusEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangedFile:
	"""A status entry together with its size on disk."""

	path: str
	working_status: FileStatus
	index_status: FileStatus
	size: int
	original_path: str | None = None


async def probe_size(path: Path) -> int:
	"""
	Return the size of a file in bytes, or 0 if it cannot be read.

	A file deleted from the working tree is a normal status entry, so a
	missing path is not an error here.

	"""
	try:
		stat = await aiofiles.os.stat(path)
	except OSError as e:
		logger.debug("Could not stat %s, counting it as 0 bytes: %s", path, e)
		return 0
	return stat.st_size


async def size_changed_files(entries: list[StatusEntry], base_dir: Path) -> list[ChangedFile]:
	"""
	Probe the size of every status entry concurrently.

	Args:
	    entries: Status entries in snapshot order
	    base_dir: Repository directory the entry paths are relative to

	Returns:
	    ChangedFile list in the same order as ``entries``

	"""
	sizes = await asyncio.gather(*(probe_size(base_dir / entry.path) for entry in entries))
	return [
		ChangedFile(
			path=entry.path,
			working_status=entry.working_status,
			index_status=entry.index_status,
			size=size,
			original_path=entry.original_path,
		)
		for entry, size in zip(entries, sizes, strict=True)
	]
