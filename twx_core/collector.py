"""
Edit Collector - Assemble document edits from node rewrites

Rewrites are expressed in the coordinates of the text that was parsed,
which may be a selection. The collector shifts them by the selection start,
keeps them in scan order and, when anything changed, adds the join
function import at the top of the document unless the exact import line is
already present somewhere in it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .ast_base import SourceSpan
from .rewriter import Rewrite
from .scanner import DEFAULT_JOIN_FUNCTION

logger = logging.getLogger(__name__)

DEFAULT_MERGE_LIBRARY = "tailwind-merge"


@dataclass(frozen=True)
class TextEdit:
    """Replacement of a document-absolute span."""
    span: SourceSpan
    replacement: str

    @property
    def is_insertion(self) -> bool:
        return self.span.is_empty


@dataclass
class EditBatch:
    """
    Edits for one document.

    `edits` holds the attribute replacements in scan order, followed by at
    most one import insertion at offset 0.
    """
    document_id: str
    edits: List[TextEdit] = field(default_factory=list)
    import_added: bool = False

    def __len__(self) -> int:
        return len(self.edits)

    def __bool__(self) -> bool:
        return bool(self.edits)

    def __iter__(self):
        return iter(self.edits)

    @property
    def replacements(self) -> List[TextEdit]:
        """Attribute edits without the import insertion."""
        if self.import_added:
            return self.edits[:-1]
        return list(self.edits)

    def to_dict(self, text: str) -> Dict[str, Any]:
        """Serialize with line/character positions computed against `text`."""
        return {
            "document": self.document_id,
            "import_added": self.import_added,
            "edits": [
                {
                    "start": edit.span.start,
                    "end": edit.span.end,
                    "range": {
                        "start": offset_to_line_character(text, edit.span.start),
                        "end": offset_to_line_character(text, edit.span.end),
                    },
                    "replacement": edit.replacement,
                }
                for edit in self.edits
            ],
        }


def offset_to_line_character(text: str, offset: int) -> Dict[str, int]:
    """0-based line and character of a string offset."""
    if offset < 0 or offset > len(text):
        raise ValueError(f"Offset {offset} outside document of length {len(text)}")
    line = text.count("\n", 0, offset)
    line_start = text.rfind("\n", 0, offset) + 1
    return {"line": line, "character": offset - line_start}


def build_import_line(
    join_function: str = DEFAULT_JOIN_FUNCTION,
    merge_library: str = DEFAULT_MERGE_LIBRARY,
) -> str:
    return f'import {{ {join_function} }} from "{merge_library}";'


def detect_line_ending(text: str) -> str:
    """Line terminator used by the document (CRLF or LF)."""
    newline = text.find("\n")
    if newline > 0 and text[newline - 1] == "\r":
        return "\r\n"
    return "\n"


class EditCollector:
    """
    Builds an EditBatch from rewrites.

    Args:
        join_function: Name imported by the inserted import line
        merge_library: Module the join function is imported from
    """

    def __init__(
        self,
        join_function: str = DEFAULT_JOIN_FUNCTION,
        merge_library: str = DEFAULT_MERGE_LIBRARY,
    ):
        self.import_line = build_import_line(join_function, merge_library)

    def collect(
        self,
        rewrites: Sequence[Rewrite],
        document_text: str,
        offset: int = 0,
        document_id: str = "<string>",
    ) -> EditBatch:
        """
        Translate rewrites into document edits.

        Args:
            rewrites: Rewrites in scan order
            document_text: Full original document text
            offset: Start of the parsed range within the document
            document_id: Identifier of the target document

        Returns:
            EditBatch (empty when there is nothing to change)
        """
        batch = EditBatch(document_id=document_id)
        for rewrite in rewrites:
            batch.edits.append(TextEdit(rewrite.span.shift(offset), rewrite.replacement))

        if batch.edits and not self.has_import(document_text):
            terminator = detect_line_ending(document_text)
            batch.edits.append(TextEdit(SourceSpan(0, 0), self.import_line + terminator))
            batch.import_added = True

        logger.info(
            f"{document_id}: {len(batch.replacements)} attribute edit(s)"
            + (", import added" if batch.import_added else "")
        )
        return batch

    def has_import(self, document_text: str) -> bool:
        """Plain substring check against the whole document."""
        return self.import_line in document_text
