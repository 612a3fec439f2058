"""Tests for size-bounded chunk building."""

from __future__ import annotations

import random
from dataclasses import FrozenInstanceError, dataclass

import pytest

from autocommit.pipeline.chunker import CHUNK_SIZE_LIMIT, build_chunks


@dataclass(frozen=True)
class FakeFile:
	path: str
	size: int


def files(*pairs: tuple[str, int]) -> list[FakeFile]:
	return [FakeFile(path, size) for path, size in pairs]


@pytest.mark.unit
def test_files_grouped_until_limit() -> None:
	"""Test that a chunk is closed before it would exceed the limit."""
	chunks = build_chunks(files(("a", 100), ("b", 100), ("c", 100)), limit=250)

	assert [chunk.files for chunk in chunks] == [["a", "b"], ["c"]]
	assert [chunk.total_size for chunk in chunks] == [200, 100]


@pytest.mark.unit
def test_exact_limit_stays_in_one_chunk() -> None:
	"""Test that reaching the limit exactly does not open a new chunk."""
	chunks = build_chunks(files(("a", 100), ("b", 150)), limit=250)

	assert [chunk.files for chunk in chunks] == [["a", "b"]]


@pytest.mark.unit
def test_oversized_file_is_its_own_chunk() -> None:
	"""Test that a file above the limit is neither split nor rejected."""
	chunks = build_chunks(files(("a", 500)), limit=100)

	assert len(chunks) == 1
	assert chunks[0].files == ["a"]
	assert chunks[0].total_size == 500


@pytest.mark.unit
def test_oversized_file_between_small_files() -> None:
	"""Test that an oversized file closes the running chunk and stands alone."""
	chunks = build_chunks(files(("a", 10), ("big", 500), ("b", 10)), limit=100)

	assert [chunk.files for chunk in chunks] == [["a"], ["big"], ["b"]]


@pytest.mark.unit
def test_empty_input_gives_no_chunks() -> None:
	"""Test that no files means no chunks."""
	assert build_chunks([], limit=100) == []


@pytest.mark.unit
def test_zero_size_files_share_a_chunk() -> None:
	"""Test that unreadable (size 0) files never force a new chunk."""
	chunks = build_chunks(files(("a", 100), ("deleted", 0), ("gone", 0)), limit=100)

	assert [chunk.files for chunk in chunks] == [["a", "deleted", "gone"]]


@pytest.mark.unit
def test_non_positive_limit_rejected() -> None:
	"""Test that the limit must be positive."""
	with pytest.raises(ValueError, match="positive"):
		build_chunks(files(("a", 1)), limit=0)


@pytest.mark.unit
def test_default_limit_is_1800_mib() -> None:
	"""Test the default chunk size limit."""
	assert CHUNK_SIZE_LIMIT == 1800 * 1024 * 1024


@pytest.mark.unit
@pytest.mark.parametrize("seed", range(20))
def test_chunks_preserve_every_file_in_order(seed: int) -> None:
	"""Test coverage, ordering and the size bound on random inputs."""
	rng = random.Random(seed)  # noqa: S311
	limit = rng.randint(1, 1000)
	inputs = [FakeFile(f"f{i}", rng.randint(0, 1500)) for i in range(rng.randint(1, 60))]

	chunks = build_chunks(inputs, limit=limit)

	assert [path for chunk in chunks for path in chunk.files] == [f.path for f in inputs]
	sizes = {f.path: f.size for f in inputs}
	for chunk in chunks:
		assert chunk.files
		assert chunk.total_size == sum(sizes[path] for path in chunk.files)
		if chunk.total_size > limit:
			assert len(chunk.files) == 1


@pytest.mark.unit
def test_closed_chunks_are_frozen() -> None:
	"""Test that a built chunk cannot be reassigned."""
	chunk = build_chunks(files(("a", 1)), limit=10)[0]

	with pytest.raises(FrozenInstanceError):
		chunk.total_size = 5  # type: ignore[misc]
