"""
TSX AST Backend - Parse JSX/TSX markup with tree-sitter

Uses the tree-sitter TSX grammar for .tsx files and for plain JSX
(.jsx/.js/.mjs/.cjs), since TSX is a superset of the JSX syntax TWX reads.
"""

import logging
from typing import Any, List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language as TSLanguage
from tree_sitter import Parser

from .ast_base import (
    ASTBackend,
    Language,
    ParsedSource,
    register_backend,
)
from .errors import ParseFailure

logger = logging.getLogger(__name__)

TSX_LANGUAGE = TSLanguage(tree_sitter_typescript.language_tsx())


def find_first_error(node: Any) -> Optional[Any]:
    """Return the first ERROR or missing node in document order."""
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = find_first_error(child)
        if found is not None:
            return found
    return node


class TSXBackend(ASTBackend):
    """
    TSX backend using the tree-sitter TSX grammar.

    tree-sitter recovers from syntax errors, so a partial selection still
    yields a usable tree. In strict mode any error node is a ParseFailure.
    """

    def __init__(self):
        self._parser = Parser(TSX_LANGUAGE)

    @property
    def language(self) -> Language:
        return Language.TSX

    @property
    def file_extensions(self) -> List[str]:
        return [".tsx"]

    def parse_string(self, content: str, filename: str = "<string>", strict: bool = False) -> ParsedSource:
        """Parse TSX source code."""
        try:
            source_bytes = content.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ParseFailure(f"{filename}: text is not valid UTF-8 ({e})") from e

        try:
            tree = self._parser.parse(source_bytes)
        except Exception as e:
            raise ParseFailure(f"{filename}: parser error: {e}") from e
        if tree is None:
            raise ParseFailure(f"{filename}: parser returned no tree")

        parsed = ParsedSource(
            text=content,
            source_bytes=source_bytes,
            tree=tree,
            filename=filename,
            language=self.language,
        )

        if parsed.has_errors:
            line, column = self._error_position(parsed)
            parsed.metadata["error"] = (line, column)
            if strict:
                raise ParseFailure(f"{filename}:{line}:{column}: syntax error")
            logger.warning(f"{filename}:{line}:{column}: syntax error, continuing with recovered tree")

        return parsed

    def _error_position(self, parsed: ParsedSource) -> Tuple[int, int]:
        """1-based line and 0-based column of the first syntax error."""
        node = find_first_error(parsed.root)
        if node is None:
            return 1, 0
        row, column = node.start_point
        return row + 1, column


class JSXBackend(TSXBackend):
    """JSX files share the TSX grammar."""

    @property
    def language(self) -> Language:
        return Language.JSX

    @property
    def file_extensions(self) -> List[str]:
        return [".jsx", ".js", ".mjs", ".cjs"]


# Register the backends
def register_tsx_backends() -> TSXBackend:
    """Create and register the TSX and JSX backends."""
    backend = TSXBackend()
    register_backend(backend)
    register_backend(JSXBackend())
    return backend


# Auto-register on import
_tsx_backend = register_tsx_backends()


def get_tsx_backend() -> TSXBackend:
    """Get the TSX backend."""
    return _tsx_backend
