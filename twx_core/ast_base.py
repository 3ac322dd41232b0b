"""
AST Base Types - Shared syntax tree types and the parser backend registry

Backends wrap a concrete parser (tree-sitter grammars) and return a
ParsedSource: the tree plus the exact text it was built from, with helpers
to map parser byte offsets back to string offsets.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ParseFailure


class Language(str, Enum):
    """Supported source languages."""
    TSX = "tsx"
    JSX = "jsx"
    UNKNOWN = "unknown"


class ValueShape(str, Enum):
    """Accepted shapes of a class attribute value."""
    STRING = "string"                # className="..."
    BRACED_STRING = "braced_string"  # className={"..."}
    BRACED_CALL = "braced_call"      # className={twJoin("...", "...")}


@dataclass(frozen=True)
class SourceSpan:
    """Half-open [start, end) character range into a text buffer."""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.start > self.end:
            raise ValueError(f"Invalid span [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def shift(self, offset: int) -> "SourceSpan":
        """Translate the span by a fixed offset."""
        return SourceSpan(self.start + offset, self.end + offset)

    def overlaps(self, other: "SourceSpan") -> bool:
        """True when the two spans share at least one character."""
        return self.start < other.end and other.start < self.end

    def slice(self, text: str) -> str:
        return text[self.start:self.end]

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass
class CandidateAttribute:
    """
    A class attribute eligible for rewriting.

    `literals` holds the decoded contents of each string literal in the value:
    one entry for the two string shapes, one per argument for a join call.
    """
    name: str
    shape: ValueShape
    span: SourceSpan
    literals: List[str]
    source: str
    line: int = 1
    column: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "shape": self.shape.value,
            "span": [self.span.start, self.span.end],
            "line": self.line,
            "column": self.column,
            "literals": list(self.literals),
        }


@dataclass
class ParsedSource:
    """A syntax tree together with the text it was parsed from."""
    text: str
    source_bytes: bytes
    tree: Any
    filename: str = "<string>"
    language: Language = Language.UNKNOWN
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def root(self) -> Any:
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return bool(self.root.has_error)

    def char_offset(self, byte_offset: int) -> int:
        """Convert a parser byte offset into a string offset."""
        if len(self.source_bytes) == len(self.text):
            return byte_offset
        return len(self.source_bytes[:byte_offset].decode("utf-8", errors="replace"))

    def node_span(self, node: Any) -> SourceSpan:
        return SourceSpan(self.char_offset(node.start_byte), self.char_offset(node.end_byte))

    def node_text(self, node: Any) -> str:
        if node is None:
            return ""
        return self.source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


class ASTBackend(ABC):
    """
    Abstract base class for language-specific parsers.

    Each grammar implements its own backend.
    """

    @property
    @abstractmethod
    def language(self) -> Language:
        """The language this backend handles."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> List[str]:
        """File extensions this backend can parse."""
        pass

    @abstractmethod
    def parse_string(self, content: str, filename: str = "<string>", strict: bool = False) -> ParsedSource:
        """
        Parse source text.

        Args:
            content: Source code content
            filename: Virtual filename for error reporting
            strict: Raise ParseFailure when the tree contains syntax errors

        Returns:
            ParsedSource for the content

        Raises:
            ParseFailure: If no usable tree can be produced
        """
        pass

    def parse_file(self, path: Path, strict: bool = False) -> ParsedSource:
        """Parse a file."""
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ParseFailure(f"Cannot read {path}: {e}") from e
        return self.parse_string(content, str(path), strict=strict)

    def can_parse(self, path: Path) -> bool:
        """Check if this backend can parse the given file."""
        return path.suffix.lower() in self.file_extensions


class ASTRegistry:
    """
    Registry of parser backends for different languages.
    """

    def __init__(self):
        self._backends: Dict[Language, ASTBackend] = {}
        self._extension_map: Dict[str, Language] = {}

    def register(self, backend: ASTBackend) -> None:
        """Register a backend."""
        self._backends[backend.language] = backend
        for ext in backend.file_extensions:
            self._extension_map[ext.lower()] = backend.language

    def get_backend(self, language: Language) -> Optional[ASTBackend]:
        """Get backend for a language."""
        return self._backends.get(language)

    def get_backend_for_file(self, path: Path) -> Optional[ASTBackend]:
        """Get backend for a file based on extension."""
        ext = path.suffix.lower()
        if ext in self._extension_map:
            return self._backends.get(self._extension_map[ext])
        return None

    def detect_language(self, path: Path) -> Language:
        """Detect language from file extension."""
        return self._extension_map.get(path.suffix.lower(), Language.UNKNOWN)

    def list_languages(self) -> List[Language]:
        """List registered languages."""
        return list(self._backends.keys())

    def list_extensions(self) -> List[str]:
        """List every extension with a registered backend."""
        return sorted(self._extension_map)


# Global registry instance
_registry: Optional[ASTRegistry] = None


def get_ast_registry() -> ASTRegistry:
    """Get the global AST registry."""
    global _registry
    if _registry is None:
        _registry = ASTRegistry()
    return _registry


def register_backend(backend: ASTBackend) -> None:
    """Register a backend in the global registry."""
    get_ast_registry().register(backend)


def detect_language(path: Path) -> Language:
    """Detect language from file path."""
    return get_ast_registry().detect_language(path)


# Utility functions

def format_syntax_tree(parsed: ParsedSource, max_depth: int = 10) -> str:
    """Format the named nodes of a parsed tree as an indented outline."""
    lines = []

    def visit(node: Any, depth: int) -> None:
        if depth > max_depth:
            lines.append("  " * depth + "...")
            return
        span = parsed.node_span(node)
        label = node.type
        if node.child_count == 0:
            label = f"{label} {parsed.node_text(node)!r}"
        lines.append(f"{'  ' * depth}{label} {span}")
        for child in node.named_children:
            visit(child, depth + 1)

    visit(parsed.root, 0)
    return "\n".join(lines)
