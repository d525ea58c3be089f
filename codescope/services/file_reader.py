"""Project file reader.

Walks a project root and returns the source files the analysis supports,
skipping build output and dependency directories.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class Language(str, Enum):
    """Source language, derived from the file extension."""

    JAVASCRIPT = "JavaScript"
    TYPESCRIPT = "TypeScript"
    PYTHON = "Python"
    JAVA = "Java"
    GO = "Go"
    RUST = "Rust"
    UNKNOWN = "Unknown"


LANGUAGE_MAP: dict[str, Language] = {
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".py": Language.PYTHON,
    ".java": Language.JAVA,
    ".go": Language.GO,
    ".rs": Language.RUST,
}

# Directories never descended into
EXCLUDE_DIRS = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "coverage",
    "__pycache__",
    "venv",
    ".venv",
})


def detect_language(file_path: str) -> Language:
    """Detect language from file extension."""
    return LANGUAGE_MAP.get(Path(file_path).suffix.lower(), Language.UNKNOWN)


def count_lines(text: str) -> int:
    """Number of lines as the chunker sees them (split on newline)."""
    return len(text.split("\n"))


@dataclass(frozen=True)
class SourceFile:
    """One project file, immutable for the duration of a run."""

    path: str
    text: str
    size: int
    line_count: int
    language: Language

    @classmethod
    def from_text(cls, path: str, text: str) -> "SourceFile":
        """Build a SourceFile from in-memory text."""
        return cls(
            path=path,
            text=text,
            size=len(text.encode("utf-8")),
            line_count=count_lines(text),
            language=detect_language(path),
        )


def read_project_files(root: str | Path) -> list[SourceFile]:
    """Read all supported source files under ``root``.

    Paths are project-relative with forward slashes and returned in a stable
    (sorted walk) order. Files that cannot be decoded as UTF-8 are skipped.

    Args:
        root: Project root directory

    Returns:
        List of SourceFile records
    """
    root_path = Path(root)
    files: list[SourceFile] = []

    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDE_DIRS)

        for filename in sorted(filenames):
            full_path = Path(dirpath) / filename
            if full_path.suffix.lower() not in LANGUAGE_MAP:
                continue

            try:
                text = full_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable file {full_path}: {e}")
                continue

            relative = full_path.relative_to(root_path).as_posix()
            files.append(SourceFile.from_text(relative, text))

    logger.info(f"Read {len(files)} source files from {root_path}")
    return files
