"""Property-based tests for the line chunker.

Uses Hypothesis to check coverage and overlap of chunk windows over
arbitrary file lengths and window/overlap settings.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from codescope.core.errors import ConfigError
from codescope.services.code_chunker import chunk

# =============================================================================
# Custom Strategies
# =============================================================================


def file_text(line_count: int) -> str:
    return "\n".join(f"line {i}" for i in range(1, line_count + 1))


@st.composite
def window_and_overlap(draw) -> tuple[int, int]:
    """Generate a window size and a strictly smaller overlap."""
    max_lines = draw(st.integers(min_value=1, max_value=60))
    overlap = draw(st.integers(min_value=0, max_value=max_lines - 1))
    return max_lines, overlap


# =============================================================================
# Property Tests
# =============================================================================


class TestChunkCoverage:
    @given(
        line_count=st.integers(min_value=1, max_value=400),
        params=window_and_overlap(),
    )
    @settings(max_examples=200)
    def test_chunks_cover_file_without_gaps(self, line_count: int, params: tuple[int, int]):
        """Union of chunk ranges is exactly [1, N], consecutive chunks touch or overlap."""
        max_lines, overlap = params
        chunks = chunk(file_text(line_count), max_lines, overlap)

        assert chunks[0].start_line == 1
        assert chunks[-1].end_line == line_count
        for previous, current in zip(chunks, chunks[1:]):
            assert current.start_line > previous.start_line
            assert current.start_line <= previous.end_line + 1

    @given(
        line_count=st.integers(min_value=1, max_value=400),
        params=window_and_overlap(),
    )
    @settings(max_examples=200)
    def test_chunk_metadata_is_consistent(self, line_count: int, params: tuple[int, int]):
        max_lines, overlap = params
        text = file_text(line_count)
        lines = text.split("\n")
        chunks = chunk(text, max_lines, overlap)

        for index, item in enumerate(chunks):
            assert item.chunk_index == index
            assert item.total_chunks == len(chunks)
            assert item.line_count <= max_lines
            assert item.content == "\n".join(lines[item.start_line - 1:item.end_line])

    @given(
        line_count=st.integers(min_value=2, max_value=400),
        params=window_and_overlap(),
    )
    def test_consecutive_full_windows_share_overlap(self, line_count: int, params: tuple[int, int]):
        max_lines, overlap = params
        chunks = chunk(file_text(line_count), max_lines, overlap)

        for previous, current in zip(chunks, chunks[1:]):
            assert previous.line_count == max_lines
            assert previous.end_line - current.start_line + 1 == overlap

    @given(
        line_count=st.integers(min_value=1, max_value=100),
        extra=st.integers(min_value=0, max_value=100),
        overlap=st.integers(min_value=0, max_value=5),
    )
    def test_small_file_is_single_chunk(self, line_count: int, extra: int, overlap: int):
        max_lines = line_count + extra + overlap + 1
        text = file_text(line_count)
        chunks = chunk(text, max_lines, overlap)

        assert len(chunks) == 1
        assert chunks[0].start_line == 1
        assert chunks[0].end_line == line_count
        assert chunks[0].content == text
        assert chunks[0].total_chunks == 1


# =============================================================================
# Examples and errors
# =============================================================================


def test_known_split():
    chunks = chunk(file_text(10), 4, 1)
    assert [(c.start_line, c.end_line) for c in chunks] == [(1, 4), (4, 7), (7, 10)]


def test_last_window_may_be_shorter():
    chunks = chunk(file_text(11), 4, 1)
    assert [(c.start_line, c.end_line) for c in chunks] == [(1, 4), (4, 7), (7, 10), (10, 11)]


def test_empty_text_is_one_chunk():
    chunks = chunk("", 10, 2)
    assert len(chunks) == 1
    assert (chunks[0].start_line, chunks[0].end_line) == (1, 1)


@pytest.mark.parametrize(
    ("max_lines", "overlap"),
    [(10, 10), (10, 11), (0, 0), (5, -1)],
)
def test_invalid_window_fails_fast(max_lines: int, overlap: int):
    with pytest.raises(ConfigError):
        chunk(file_text(100), max_lines, overlap)
