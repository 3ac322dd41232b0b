"""
TWX Core - Group responsive Tailwind classes in JSX/TSX into twJoin() calls
"""

from .version import __version__

from .errors import (
    TwxError,
    NoActiveTarget,
    ParseFailure,
    ApplyFailure,
    EditConflictError,
)
from .classifier import (
    MEDIA_PREFIXES,
    TokenPartition,
    classify_string,
    separate_classes,
    split_classes,
)
from .ast_base import (
    CandidateAttribute,
    Language,
    ParsedSource,
    SourceSpan,
    ValueShape,
    get_ast_registry,
)
from .ast_tsx import TSXBackend, JSXBackend, get_tsx_backend
from .scanner import AttributeScanner, find_class_attributes
from .rewriter import NodeRewriter, Rewrite, render_join_call
from .collector import EditBatch, EditCollector, TextEdit, build_import_line
from .patch_engine import apply_batch, apply_edits, generate_unified_diff
from .host import EditorHost, FileHost, MemoryHost, Position
from .config import TWXConfig, TransformConfig, get_config, load_config
from .extractor import (
    ClassExtractor,
    extract_classes,
    run_extract_command,
    transform_text,
)

__all__ = [
    "__version__",
    # Errors
    "TwxError",
    "NoActiveTarget",
    "ParseFailure",
    "ApplyFailure",
    "EditConflictError",
    # Classification
    "MEDIA_PREFIXES",
    "TokenPartition",
    "classify_string",
    "separate_classes",
    "split_classes",
    # Parsing and scanning
    "CandidateAttribute",
    "Language",
    "ParsedSource",
    "SourceSpan",
    "ValueShape",
    "get_ast_registry",
    "TSXBackend",
    "JSXBackend",
    "get_tsx_backend",
    "AttributeScanner",
    "find_class_attributes",
    # Rewriting and edits
    "NodeRewriter",
    "Rewrite",
    "render_join_call",
    "EditBatch",
    "EditCollector",
    "TextEdit",
    "build_import_line",
    "apply_batch",
    "apply_edits",
    "generate_unified_diff",
    # Hosts
    "EditorHost",
    "FileHost",
    "MemoryHost",
    "Position",
    # Configuration
    "TWXConfig",
    "TransformConfig",
    "get_config",
    "load_config",
    # Pipeline
    "ClassExtractor",
    "extract_classes",
    "run_extract_command",
    "transform_text",
]
