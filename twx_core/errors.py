"""
TWX error types.

Per-node anomalies (unsupported attribute shapes) are not errors: the scanner
skips them. Everything here is pipeline-wide and ends up in a single
failure report.
"""


class TwxError(Exception):
    """Base class for TWX errors."""
    pass


class NoActiveTarget(TwxError):
    """Raised by a host when there is no document to operate on."""
    pass


class ParseFailure(TwxError):
    """Raised when the input cannot be parsed as JSX/TSX markup."""
    pass


class ApplyFailure(TwxError):
    """Raised when an edit batch cannot be applied to a document."""
    pass


class EditConflictError(ApplyFailure):
    """Raised when edits overlap or fall outside the document."""
    pass
