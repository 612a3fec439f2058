"""Grouping of changed files into size-bounded chunks."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

# Remotes commonly reject pushes around 2 GiB
CHUNK_SIZE_LIMIT = 1800 * 1024 * 1024


class SizedFile(Protocol):
	"""Anything with a path and a byte size."""

	@property
	def path(self) -> str: ...

	@property
	def size(self) -> int: ...


@dataclass(frozen=True)
class Chunk:
	"""A closed group of files staged and committed together."""

	files: list[str]
	total_size: int


def build_chunks(files: Sequence[SizedFile], limit: int = CHUNK_SIZE_LIMIT) -> list[Chunk]:
	"""
	Split files into ordered chunks whose total size stays within ``limit``.

	Files are never split: one file larger than the limit ends up alone in
	its own chunk.

	Args:
	    files: Files in the order they should be committed
	    limit: Maximum cumulative size of a chunk in bytes

	Returns:
	    Chunks in input order; no chunks for empty input

	Raises:
	    ValueError: If ``limit`` is not positive

	"""
	if limit <= 0:
		msg = f"Chunk size limit must be positive, got {limit}"
		raise ValueError(msg)

	chunks: list[Chunk] = []
	paths: list[str] = []
	total = 0

	for file in files:
		if paths and total + file.size > limit:
			chunks.append(Chunk(files=paths, total_size=total))
			paths, total = [], 0
		paths.append(file.path)
		total += file.size

	if paths:
		chunks.append(Chunk(files=paths, total_size=total))

	return chunks
