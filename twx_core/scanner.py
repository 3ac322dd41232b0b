"""
Attribute Scanner - Find rewritable class attributes in a parsed tree

Walks the tree-sitter tree in document order (pre-order, depth-first) and
collects attributes whose value is one of the accepted shapes:

    className="..."
    className={"..."}
    className={twJoin("...", "...")}   # every argument a string literal

Any other value is skipped without error. Traversal always continues into
the children of a skipped node.
"""

import logging
import re
from typing import Any, List, Optional

from .ast_base import CandidateAttribute, ParsedSource, ValueShape

logger = logging.getLogger(__name__)

DEFAULT_ATTRIBUTE = "className"
DEFAULT_JOIN_FUNCTION = "twJoin"

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}
_HEX_ESCAPE = re.compile(r"\\(?:x([0-9a-fA-F]{2})|u([0-9a-fA-F]{4})|u\{([0-9a-fA-F]+)\})")


def decode_escape(sequence: str) -> str:
    """Decode one JavaScript escape sequence (including the backslash)."""
    match = _HEX_ESCAPE.fullmatch(sequence)
    if match:
        digits = next(group for group in match.groups() if group)
        return chr(int(digits, 16))
    body = sequence[1:]
    if body.startswith(("\r\n", "\n", "\r", "\u2028", "\u2029")):
        return ""  # line continuation
    return _SIMPLE_ESCAPES.get(body, body)


def string_literal_value(parsed: ParsedSource, node: Any) -> str:
    """Decoded contents of a string literal node, without the quotes."""
    if not node.named_children:
        return parsed.node_text(node)[1:-1]
    parts = []
    for child in node.named_children:
        text = parsed.node_text(child)
        if child.type == "escape_sequence":
            parts.append(decode_escape(text))
        else:
            # string_fragment, html_character_reference
            parts.append(text)
    return join_surrogates("".join(parts))


def join_surrogates(value: str) -> str:
    """Combine UTF-16 surrogate pairs produced by \\uXXXX escapes into code points."""
    return value.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


def _meaningful_children(node: Any) -> List[Any]:
    return [child for child in node.named_children if child.type != "comment"]


def _has_comment(node: Any) -> bool:
    return any(child.type == "comment" for child in node.named_children)


class AttributeScanner:
    """
    Collects CandidateAttribute objects from a parsed source.

    Args:
        attribute_name: Attribute to match (exact, case-sensitive)
        join_function: Callee accepted for the call shape
    """

    def __init__(self, attribute_name: str = DEFAULT_ATTRIBUTE, join_function: str = DEFAULT_JOIN_FUNCTION):
        self.attribute_name = attribute_name
        self.join_function = join_function

    def scan(self, parsed: ParsedSource) -> List[CandidateAttribute]:
        """Return candidates in document order."""
        candidates: List[CandidateAttribute] = []
        stack = [parsed.root]
        while stack:
            node = stack.pop()
            if node.type == "jsx_attribute":
                candidate = self._match_attribute(parsed, node)
                if candidate is not None:
                    candidates.append(candidate)
            stack.extend(reversed(node.children))

        logger.debug(f"{parsed.filename}: {len(candidates)} candidate attribute(s)")
        return candidates

    def _match_attribute(self, parsed: ParsedSource, node: Any) -> Optional[CandidateAttribute]:
        children = _meaningful_children(node)
        if not children or parsed.node_text(children[0]) != self.attribute_name:
            return None

        value = self._attribute_value(node)
        if value is None:
            return None

        row, column = node.start_point
        shape_literals = self._classify_value(parsed, value)
        if shape_literals is None:
            logger.debug(f"{parsed.filename}:{row + 1}: unsupported {self.attribute_name} value, skipped")
            return None

        shape, literals = shape_literals
        return CandidateAttribute(
            name=self.attribute_name,
            shape=shape,
            span=parsed.node_span(value),
            literals=literals,
            source=parsed.node_text(value),
            line=row + 1,
            column=column,
        )

    def _attribute_value(self, node: Any) -> Optional[Any]:
        """The value node following '=', or None for a bare attribute."""
        seen_equals = False
        for child in node.children:
            if not seen_equals:
                seen_equals = child.type == "="
            elif child.is_named and child.type != "comment":
                return child
        return None

    def _classify_value(self, parsed: ParsedSource, value: Any):
        if value.type == "string":
            return ValueShape.STRING, [string_literal_value(parsed, value)]

        if value.type != "jsx_expression":
            return None

        # Rewriting would drop comments inside the braces.
        if _has_comment(value):
            return None
        inner = _meaningful_children(value)
        if len(inner) != 1:
            return None
        expression = inner[0]

        if expression.type == "string":
            return ValueShape.BRACED_STRING, [string_literal_value(parsed, expression)]

        if expression.type == "call_expression":
            arguments = self._join_call_arguments(parsed, expression)
            if arguments is not None:
                return ValueShape.BRACED_CALL, [string_literal_value(parsed, arg) for arg in arguments]

        return None

    def _join_call_arguments(self, parsed: ParsedSource, call: Any) -> Optional[List[Any]]:
        """Argument nodes of a join call whose arguments are all string literals."""
        function = call.child_by_field_name("function")
        arguments = call.child_by_field_name("arguments")
        if function is None or parsed.node_text(function) != self.join_function:
            return None
        # Tagged templates parse as calls with a template_string argument.
        if arguments is None or arguments.type != "arguments":
            return None
        # Rewriting would drop optional chaining and type arguments.
        if any(child.type in ("optional_chain", "type_arguments") for child in call.children):
            return None

        if _has_comment(arguments):
            return None
        nodes = list(arguments.named_children)
        if any(arg.type != "string" for arg in nodes):
            return None
        return nodes


def find_class_attributes(
    parsed: ParsedSource,
    attribute_name: str = DEFAULT_ATTRIBUTE,
    join_function: str = DEFAULT_JOIN_FUNCTION,
) -> List[CandidateAttribute]:
    """Scan a parsed source for rewritable class attributes."""
    return AttributeScanner(attribute_name, join_function).scan(parsed)
