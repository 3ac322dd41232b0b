"""
Node Rewriter - Turn a candidate attribute into its grouped join call

The base group (classes without a breakpoint prefix) comes first, followed
by one argument per breakpoint prefix in order of first appearance:

    {twJoin(
            "p-4 text-center",
            "sm:p-8"
          )}

A candidate whose classes carry no breakpoint prefix is left alone, and so
is one whose current text already equals the rendered call. The second rule
makes a repeated run a no-op.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .ast_base import CandidateAttribute, SourceSpan
from .classifier import MEDIA_PREFIXES, TokenPartition, separate_classes, split_classes
from .scanner import DEFAULT_JOIN_FUNCTION

logger = logging.getLogger(__name__)

DEFAULT_ARG_INDENT = 8
DEFAULT_CLOSE_INDENT = 6

_SURROGATE = re.compile("[\ud800-\udfff]")


@dataclass
class Rewrite:
    """Replacement for one candidate value, in parsed-text coordinates."""
    span: SourceSpan
    replacement: str
    original: str
    partition: TokenPartition


def quote_js_string(value: str) -> str:
    """Double-quoted JavaScript string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r")
    # Unpaired surrogates have no UTF-8 encoding
    escaped = _SURROGATE.sub(lambda m: f"\\u{ord(m.group()):04X}", escaped)
    return f'"{escaped}"'


def extract_tokens(candidate: CandidateAttribute) -> List[str]:
    """Class tokens of a candidate, literal by literal, in source order."""
    tokens: List[str] = []
    for literal in candidate.literals:
        tokens.extend(split_classes(literal))
    return tokens


def render_join_call(
    groups: Sequence[Sequence[str]],
    join_function: str = DEFAULT_JOIN_FUNCTION,
    arg_indent: int = DEFAULT_ARG_INDENT,
    close_indent: int = DEFAULT_CLOSE_INDENT,
    newline: str = "\n",
) -> str:
    """Render class groups as a braced join call expression."""
    separator = "," + newline + " " * arg_indent
    arguments = separator.join(quote_js_string(" ".join(group)) for group in groups)
    return f"{{{join_function}({newline}{' ' * arg_indent}{arguments}{newline}{' ' * close_indent})}}"


class NodeRewriter:
    """
    Rewrites candidates into join calls.

    Args:
        join_function: Callee emitted in replacement text
        prefixes: Breakpoint prefix table
        arg_indent: Spaces before each argument line
        close_indent: Spaces before the closing parenthesis
    """

    def __init__(
        self,
        join_function: str = DEFAULT_JOIN_FUNCTION,
        prefixes: Sequence[str] = MEDIA_PREFIXES,
        arg_indent: int = DEFAULT_ARG_INDENT,
        close_indent: int = DEFAULT_CLOSE_INDENT,
    ):
        self.join_function = join_function
        self.prefixes = tuple(prefixes)
        self.arg_indent = arg_indent
        self.close_indent = close_indent

    def rewrite(self, candidate: CandidateAttribute, newline: str = "\n") -> Optional[Rewrite]:
        """
        Return the rewrite for a candidate, or None when nothing changes.

        `newline` is the line terminator of the document being rewritten.
        """
        partition = separate_classes(extract_tokens(candidate), self.prefixes)
        if not partition.has_media_classes:
            logger.debug(f"line {candidate.line}: no breakpoint classes, left unchanged")
            return None

        replacement = render_join_call(
            partition.groups(),
            self.join_function,
            self.arg_indent,
            self.close_indent,
            newline,
        )
        if replacement == candidate.source:
            logger.debug(f"line {candidate.line}: already grouped")
            return None

        return Rewrite(
            span=candidate.span,
            replacement=replacement,
            original=candidate.source,
            partition=partition,
        )

    def rewrite_all(self, candidates: Sequence[CandidateAttribute], newline: str = "\n") -> List[Rewrite]:
        """Rewrite candidates in order, dropping the unchanged ones."""
        rewrites = []
        for candidate in candidates:
            result = self.rewrite(candidate, newline)
            if result is not None:
                rewrites.append(result)
        return rewrites
