"""Identifier parsing: hashes, dotted names, lib dependencies."""

from ucmlens.naming.identifiers import is_hash, normalize_hash, word_at_position
from ucmlens.naming.libinfo import get_display_name, get_version_badge, parse_lib_info

__all__ = [
    "is_hash",
    "normalize_hash",
    "word_at_position",
    "parse_lib_info",
    "get_display_name",
    "get_version_badge",
]
