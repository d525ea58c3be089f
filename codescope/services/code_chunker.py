"""Line-based chunking of source files for AI review.

Large files are split into overlapping windows so each model call stays
within the reviewer's input limits. Line numbers on every chunk are
file-absolute and 1-based.
"""

import logging
from dataclasses import dataclass

from codescope.core.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class Chunk:
    """A line-bounded slice of one file."""

    content: str
    start_line: int
    end_line: int
    chunk_index: int
    total_chunks: int

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def token_estimate(self) -> int:
        """Estimate token count (roughly 4 chars per token)."""
        return len(self.content) // 4


def validate_chunking(max_lines: int, overlap_lines: int) -> None:
    """Raise ConfigError for window/overlap values the chunker cannot advance with."""
    if max_lines < 1:
        raise ConfigError(f"max_lines must be >= 1, got {max_lines}")
    if overlap_lines < 0:
        raise ConfigError(f"overlap_lines must be >= 0, got {overlap_lines}")
    if overlap_lines >= max_lines:
        raise ConfigError(
            f"overlap_lines ({overlap_lines}) must be smaller than max_lines ({max_lines})"
        )


def chunk(text: str, max_lines: int, overlap_lines: int) -> list[Chunk]:
    """Split text into windows of ``max_lines`` lines overlapping by ``overlap_lines``.

    A file of at most ``max_lines`` lines yields exactly one chunk. Otherwise
    windows advance by ``max_lines - overlap_lines`` until one reaches the end
    of the file; the last window may be shorter.

    Args:
        text: File contents
        max_lines: Window size in lines
        overlap_lines: Lines shared by consecutive windows

    Returns:
        Chunks in file order, all carrying the same total_chunks

    Raises:
        ConfigError: If overlap_lines >= max_lines or either value is out of range
    """
    validate_chunking(max_lines, overlap_lines)

    lines = text.split("\n")
    total_lines = len(lines)

    if total_lines <= max_lines:
        return [Chunk(content=text, start_line=1, end_line=total_lines, chunk_index=0, total_chunks=1)]

    step = max_lines - overlap_lines
    chunks: list[Chunk] = []
    start = 0

    while start < total_lines:
        end = min(start + max_lines, total_lines)
        chunks.append(Chunk(
            content="\n".join(lines[start:end]),
            start_line=start + 1,
            end_line=end,
            chunk_index=len(chunks),
            total_chunks=0,
        ))
        if end >= total_lines:
            break
        start += step

    for item in chunks:
        item.total_chunks = len(chunks)

    logger.debug(f"Split {total_lines} lines into {len(chunks)} chunks")
    return chunks
