"""
Edit application and unified diff rendering.

Edits are validated as a whole (bounds, no overlap) before anything is
applied, then applied bottom-up so earlier offsets stay valid. Writing a
file goes through a temporary file and an atomic rename, so a document is
either fully rewritten or left untouched.
"""

import difflib
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List

from .collector import EditBatch, TextEdit
from .errors import ApplyFailure, EditConflictError

logger = logging.getLogger(__name__)


def validate_edits(text: str, edits: Iterable[TextEdit]) -> List[TextEdit]:
    """
    Check edits against a document and return them sorted by position.

    Raises:
        EditConflictError: If an edit falls outside the text or two edits overlap
    """
    ordered = sorted(edits, key=lambda e: (e.span.start, e.span.end))
    for edit in ordered:
        if edit.span.end > len(text):
            raise EditConflictError(
                f"Edit {edit.span} out of bounds (document has {len(text)} characters)"
            )
    for previous, current in zip(ordered, ordered[1:]):
        if previous.span.end > current.span.start:
            raise EditConflictError(f"Edits {previous.span} and {current.span} overlap")
    return ordered


def apply_edits(text: str, edits: Iterable[TextEdit]) -> str:
    """
    Apply edits to a text and return the new text.

    Edits are applied in reverse position order (bottom-up) to avoid offset
    shift. Insertions at the same offset keep their relative batch order.
    """
    ordered = validate_edits(text, edits)
    result = text
    for edit in reversed(ordered):
        result = result[:edit.span.start] + edit.replacement + result[edit.span.end:]
    return result


def apply_batch(text: str, batch: EditBatch) -> str:
    """Apply an EditBatch to the text of its document."""
    return apply_edits(text, batch.edits)


def generate_unified_diff(
    before_text: str,
    after_text: str,
    filename: str = "component.tsx",
    context_lines: int = 3,
) -> str:
    """
    Generate a unified diff between two versions of a file.

    Args:
        before_text: Original text
        after_text: Modified text
        filename: Name for the diff header
        context_lines: Number of context lines around changes

    Returns:
        Unified diff string (empty when the texts are equal)
    """
    diff = difflib.unified_diff(
        before_text.splitlines(keepends=True),
        after_text.splitlines(keepends=True),
        fromfile=f"a/{filename}",
        tofile=f"b/{filename}",
        n=context_lines,
    )
    lines = []
    for line in diff:
        # difflib leaves the last line without a terminator
        lines.append(line if line.endswith("\n") else line + "\n")
    return "".join(lines)


def _remove_temp(tmp_name) -> None:
    if tmp_name and os.path.exists(tmp_name):
        os.unlink(tmp_name)


def write_atomically(path: Path, text: str) -> None:
    """
    Replace a file's content via a temporary file in the same directory.

    Raises:
        ApplyFailure: If the file cannot be written
    """
    path = Path(path)
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".twx", dir=str(path.parent))
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o7777)
        os.replace(tmp_name, path)
    except (OSError, UnicodeError) as e:
        _remove_temp(tmp_name)
        raise ApplyFailure(f"Cannot write {path}: {e}") from e
    except BaseException:
        _remove_temp(tmp_name)
        raise

    logger.info(f"Wrote {path}")
