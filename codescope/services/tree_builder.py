"""Tree-sitter backed syntax tree builder.

Turns raw source text into a ``tree_sitter.Tree`` for the rule engine.
Returns None for files it cannot parse cleanly or has no grammar for.

Parsers are initialized lazily on first use, not at import time, so that a
builder can be created cheaply and in worker processes after fork().
"""

import logging
from pathlib import Path

import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Parser, Tree

logger = logging.getLogger(__name__)


# Extension -> grammar key
GRAMMAR_BY_EXTENSION: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}


class TreeBuilder:
    """Builds syntax trees for the languages the rule engine understands."""

    def __init__(self) -> None:
        self.parsers: dict[str, Parser] = {}
        self._initialized = False

    def _ensure_parsers(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        self._init_parsers()

    def _init_parsers(self) -> None:
        """Initialize Tree-sitter parsers for supported grammars."""
        grammars = {
            "javascript": tsjavascript.language,
            "typescript": tstypescript.language_typescript,
            "tsx": tstypescript.language_tsx,
        }
        for key, language_fn in grammars.items():
            try:
                self.parsers[key] = Parser(Language(language_fn()))
                logger.debug(f"{key} parser initialized")
            except Exception as e:
                logger.error(f"Failed to init {key} parser: {e}")

    def supports(self, file_path: str) -> bool:
        """True if a grammar exists for this file's extension."""
        return Path(file_path).suffix.lower() in GRAMMAR_BY_EXTENSION

    def parse(self, source_text: str, file_path: str) -> Tree | None:
        """Parse source text into a syntax tree.

        Args:
            source_text: Raw file contents
            file_path: Path used to pick the grammar

        Returns:
            The tree, or None if the file has no grammar or contains syntax errors
        """
        self._ensure_parsers()

        grammar = GRAMMAR_BY_EXTENSION.get(Path(file_path).suffix.lower())
        parser = self.parsers.get(grammar) if grammar else None
        if parser is None:
            return None

        tree = parser.parse(source_text.encode("utf-8"))
        if tree.root_node.has_error:
            logger.warning(f"Parse errors in {file_path}, skipping static rules")
            return None
        return tree
