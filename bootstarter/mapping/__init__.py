"""
Structural mapping between entity and DTO shapes.

Re-exports the mapper operations so callers can write
``from bootstarter.mapping import parse, copy``.
"""

from .object_mapper import convert, copy, copy_list, new_instance, parse, parse_list
from .patcher import DocumentPatcher, apply_non_null_to

__all__ = [
    "convert",
    "copy",
    "copy_list",
    "new_instance",
    "parse",
    "parse_list",
    "DocumentPatcher",
    "apply_non_null_to",
]
