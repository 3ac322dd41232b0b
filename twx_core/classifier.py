"""
Token Classifier - Partition utility classes by responsive breakpoint prefix

Classes are split on whitespace and grouped by the first breakpoint prefix
they start with. Everything without a recognized prefix stays in the base
group, in its original order.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

logger = logging.getLogger(__name__)


# Recognized breakpoint prefixes, in precedence order.
MEDIA_PREFIXES: Tuple[str, ...] = (
    "mobile:",
    "tablet:",
    "desktop:",
    "sm:",
    "md:",
    "lg:",
    "xl:",
    "2xl:",
)

_WHITESPACE = re.compile(r"\s+")


@dataclass
class TokenPartition:
    """
    Result of classifying a token list.

    `buckets` is insertion-ordered: a prefix appears at the position where its
    first token was encountered.
    """
    base: List[str] = field(default_factory=list)
    buckets: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def has_media_classes(self) -> bool:
        """True when at least one token carried a breakpoint prefix."""
        return bool(self.buckets)

    def groups(self) -> List[List[str]]:
        """Non-empty groups in output order: base first, then each bucket."""
        result = []
        if self.base:
            result.append(list(self.base))
        for tokens in self.buckets.values():
            if tokens:
                result.append(list(tokens))
        return result

    def tokens(self) -> List[str]:
        """All tokens, base first, then buckets in insertion order."""
        result = list(self.base)
        for tokens in self.buckets.values():
            result.extend(tokens)
        return result

    def to_dict(self) -> Dict[str, object]:
        return {"base": list(self.base), "buckets": {k: list(v) for k, v in self.buckets.items()}}


def split_classes(value: str) -> List[str]:
    """Split a class string on runs of whitespace, dropping empty tokens."""
    return [token for token in _WHITESPACE.split(value) if token]


def match_prefix(token: str, prefixes: Sequence[str] = MEDIA_PREFIXES) -> str:
    """Return the first prefix the token starts with, or an empty string."""
    for prefix in prefixes:
        if token.startswith(prefix):
            return prefix
    return ""


def separate_classes(
    tokens: Iterable[str],
    prefixes: Sequence[str] = MEDIA_PREFIXES,
) -> TokenPartition:
    """
    Partition tokens into base classes and per-prefix buckets.

    Args:
        tokens: Class tokens in source order
        prefixes: Prefix table, tested in order (first match wins)

    Returns:
        TokenPartition covering every input token exactly once
    """
    partition = TokenPartition()
    for token in tokens:
        prefix = match_prefix(token, prefixes)
        if prefix:
            partition.buckets.setdefault(prefix, []).append(token)
        else:
            partition.base.append(token)

    logger.debug(
        "Classified %d base token(s) and %d bucket(s): %s",
        len(partition.base), len(partition.buckets), list(partition.buckets),
    )
    return partition


def classify_string(value: str, prefixes: Sequence[str] = MEDIA_PREFIXES) -> TokenPartition:
    """Split a class string and classify its tokens."""
    return separate_classes(split_classes(value), prefixes)
