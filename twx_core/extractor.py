"""
Class Extraction Pipeline
=========================

Scan -> Rewrite -> Collect, as a single pass over a text snapshot:

    batch = extract_classes(text)                      # whole document
    batch = extract_classes(text, selection=(40, 120)) # selection only
    new_text = transform_text(text)

run_extract_command() drives the same pipeline through an EditorHost and
is what editor integrations and the CLI call.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Tuple

from .ast_base import ASTBackend, CandidateAttribute, get_ast_registry
from .ast_tsx import get_tsx_backend
from .collector import EditBatch, EditCollector, detect_line_ending
from .config import TransformConfig, get_config
from .errors import NoActiveTarget
from .host import EditorHost
from .patch_engine import apply_batch
from .rewriter import NodeRewriter
from .scanner import AttributeScanner

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "An error occurred while extracting Tailwind classes: "

Selection = Optional[Tuple[int, int]]


def resolve_selection(text: str, selection: Selection) -> Tuple[str, int]:
    """
    Return the text to scan and its offset in the document.

    An empty or missing selection means the whole document.
    """
    if selection is None:
        return text, 0
    start, end = selection
    if start < 0 or end > len(text) or start > end:
        raise ValueError(f"Selection ({start}, {end}) outside document of length {len(text)}")
    if start == end:
        return text, 0
    return text[start:end], start


class ClassExtractor:
    """
    Wires the scanner, rewriter and collector for one configuration.

    Args:
        config: Transform settings (defaults to the global configuration)
    """

    def __init__(self, config: Optional[TransformConfig] = None):
        self.config = config if config is not None else get_config().transform
        self.scanner = AttributeScanner(self.config.attribute_name, self.config.join_function)
        self.rewriter = NodeRewriter(
            join_function=self.config.join_function,
            prefixes=self.config.prefixes,
            arg_indent=self.config.arg_indent,
            close_indent=self.config.close_indent,
        )
        self.collector = EditCollector(self.config.join_function, self.config.merge_library)

    def backend_for(self, document_id: str) -> ASTBackend:
        """Backend registered for the document's extension (TSX by default)."""
        backend = get_ast_registry().get_backend_for_file(Path(document_id))
        return backend if backend is not None else get_tsx_backend()

    def scan(self, text: str, selection: Selection = None, document_id: str = "<string>") -> List[CandidateAttribute]:
        """Candidate attributes with document-absolute spans."""
        source, offset = resolve_selection(text, selection)
        parsed = self.backend_for(document_id).parse_string(source, document_id, strict=self.config.strict_parse)
        return [replace(c, span=c.span.shift(offset)) for c in self.scanner.scan(parsed)]

    def extract(self, text: str, selection: Selection = None, document_id: str = "<string>") -> EditBatch:
        """
        Compute the edit batch for a document.

        Args:
            text: Full document text
            selection: Optional (start, end) range to restrict the scan to
            document_id: Document identifier (its extension selects the parser)

        Returns:
            EditBatch in document-absolute coordinates

        Raises:
            ParseFailure: If the text cannot be parsed
            ValueError: If the selection lies outside the document
        """
        source, offset = resolve_selection(text, selection)
        backend = self.backend_for(document_id)
        parsed = backend.parse_string(source, document_id, strict=self.config.strict_parse)

        candidates = self.scanner.scan(parsed)
        rewrites = self.rewriter.rewrite_all(candidates, detect_line_ending(text))
        logger.info(f"{document_id}: {len(candidates)} candidate(s), {len(rewrites)} rewrite(s)")

        return self.collector.collect(rewrites, text, offset=offset, document_id=document_id)


def extract_classes(
    text: str,
    selection: Selection = None,
    config: Optional[TransformConfig] = None,
    filename: str = "<string>",
) -> EditBatch:
    """Compute the edit batch for a document (see ClassExtractor.extract)."""
    return ClassExtractor(config).extract(text, selection, filename)


def transform_text(
    text: str,
    selection: Selection = None,
    config: Optional[TransformConfig] = None,
    filename: str = "<string>",
) -> str:
    """Return the document text with all edits applied."""
    batch = extract_classes(text, selection, config, filename)
    return apply_batch(text, batch)


def run_extract_command(host: EditorHost, config: Optional[TransformConfig] = None) -> Optional[EditBatch]:
    """
    Run the extraction command against a host.

    Returns:
        The applied EditBatch (possibly empty), or None when there was no
        document or the command failed. Failures are reported through
        host.report_failure exactly once; the document is left untouched.
    """
    try:
        text = host.get_active_document_text()
    except NoActiveTarget as e:
        logger.debug(f"Nothing to do: {e}")
        return None

    try:
        batch = ClassExtractor(config).extract(text, host.get_active_selection_range(), host.document_id)
    except Exception as e:
        logger.debug("Extraction failed", exc_info=True)
        host.report_failure(f"{FAILURE_PREFIX}{e}")
        return None

    if not batch:
        return batch

    try:
        applied = host.apply_edits_atomically(host.document_id, batch)
    except Exception as e:
        logger.debug("Applying edits failed", exc_info=True)
        host.report_failure(f"{FAILURE_PREFIX}{e}")
        return None

    if not applied:
        host.report_failure(f"{FAILURE_PREFIX}the edits could not be applied to {host.document_id}")
        return None

    return batch
