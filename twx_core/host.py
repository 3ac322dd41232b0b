"""
Host Surface - The environment that owns the document

The extraction command never touches a document directly. It reads the text
and selection through an EditorHost, hands back one EditBatch to apply
atomically, and reports failures through a single call.

Two hosts are provided:
- MemoryHost: text kept in memory (embedding, tests)
- FileHost: a file on disk (command-line tool)
"""

import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO, Tuple

from .collector import EditBatch, offset_to_line_character
from .errors import ApplyFailure, NoActiveTarget
from .patch_engine import apply_batch, write_atomically

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    """0-based line and character in a document."""
    line: int
    character: int


class EditorHost(ABC):
    """
    Capability surface consumed by the extraction command.
    """

    @property
    @abstractmethod
    def document_id(self) -> str:
        """Identifier of the active document."""
        pass

    @abstractmethod
    def get_active_document_text(self) -> str:
        """
        Return the full text of the active document.

        Raises:
            NoActiveTarget: If there is no document to operate on
        """
        pass

    @abstractmethod
    def get_active_selection_range(self) -> Optional[Tuple[int, int]]:
        """(start, end) offsets of the selection, or None when nothing is selected."""
        pass

    @abstractmethod
    def apply_edits_atomically(self, document_id: str, batch: EditBatch) -> bool:
        """Apply every edit of the batch or none of them."""
        pass

    @abstractmethod
    def report_failure(self, message: str) -> None:
        """Show a failure to the user."""
        pass

    def offset_to_position(self, offset: int) -> Position:
        """Convert a document offset into a line/character position."""
        pos = offset_to_line_character(self.get_active_document_text(), offset)
        return Position(pos["line"], pos["character"])


class MemoryHost(EditorHost):
    """
    Host backed by an in-memory string.

    Args:
        text: Document text (None means no active document)
        selection: Optional (start, end) selection
        document_id: Identifier reported in edit batches
    """

    def __init__(
        self,
        text: Optional[str],
        selection: Optional[Tuple[int, int]] = None,
        document_id: str = "untitled:Untitled-1",
    ):
        self.text = text
        self.selection = selection
        self._document_id = document_id
        self.failures: List[str] = []
        self.applied: List[EditBatch] = []

    @property
    def document_id(self) -> str:
        return self._document_id

    def get_active_document_text(self) -> str:
        if self.text is None:
            raise NoActiveTarget("No active document")
        return self.text

    def get_active_selection_range(self) -> Optional[Tuple[int, int]]:
        return self.selection

    def apply_edits_atomically(self, document_id: str, batch: EditBatch) -> bool:
        if self.text is None or document_id != self._document_id:
            logger.warning(f"Edit batch for unknown document {document_id!r}")
            return False
        try:
            self.text = apply_batch(self.text, batch)
        except ApplyFailure as e:
            logger.warning(f"Edit batch rejected: {e}")
            return False
        self.applied.append(batch)
        return True

    def report_failure(self, message: str) -> None:
        logger.error(message)
        self.failures.append(message)


class FileHost(EditorHost):
    """
    Host backed by a file on disk.

    The file is read once; that snapshot is what the command operates on.
    Applying refuses to overwrite a file that changed since the snapshot.

    Args:
        path: File to operate on
        selection: Optional (start, end) selection
        write: Write the result back to the file (False keeps it in `result_text`)
        stream: Where failures are printed
    """

    def __init__(
        self,
        path: Path,
        selection: Optional[Tuple[int, int]] = None,
        write: bool = True,
        stream: Optional[TextIO] = None,
    ):
        self.path = Path(path)
        self.selection = selection
        self.write = write
        self.stream = stream if stream is not None else sys.stderr
        self.snapshot: Optional[str] = None
        self.result_text: Optional[str] = None
        self.failures: List[str] = []

    @property
    def document_id(self) -> str:
        return str(self.path)

    def get_active_document_text(self) -> str:
        if self.snapshot is None:
            if not self.path.is_file():
                raise NoActiveTarget(f"No such file: {self.path}")
            # newline="" keeps CRLF line endings intact
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                self.snapshot = f.read()
        return self.snapshot

    def get_active_selection_range(self) -> Optional[Tuple[int, int]]:
        return self.selection

    def apply_edits_atomically(self, document_id: str, batch: EditBatch) -> bool:
        if document_id != self.document_id or self.snapshot is None:
            logger.warning(f"Edit batch for unknown document {document_id!r}")
            return False
        try:
            new_text = apply_batch(self.snapshot, batch)
            if self.write:
                with open(self.path, "r", encoding="utf-8", newline="") as f:
                    if f.read() != self.snapshot:
                        raise ApplyFailure(f"{self.path} changed on disk since it was read")
                write_atomically(self.path, new_text)
        except (ApplyFailure, OSError, UnicodeError) as e:
            logger.warning(f"Edit batch rejected: {e}")
            return False
        self.result_text = new_text
        return True

    def report_failure(self, message: str) -> None:
        logger.debug(message)
        self.failures.append(message)
        print(f"{self.path}: {message}", file=self.stream)
