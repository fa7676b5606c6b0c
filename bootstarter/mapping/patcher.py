"""
Partial-update ("PATCH") mapping.

Only members carrying a non-default value on the patch document are
applied to the target, so a patch DTO with every field optional describes
exactly the members a client wants changed.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from bootstarter.mapping.members import is_default_value, readable_members, writable_members
from bootstarter.mapping.object_mapper import convert
from bootstarter.utils.settings import debug_enabled

logger = logging.getLogger(__name__)

_MISSING = object()


def apply_non_null_to(patch: Any, target: Any, *, strict: Optional[bool] = None) -> int:
    """Apply every non-default member of ``patch`` onto the same-named member of ``target``.

    Values are converted into the target member's declared type, so a list
    of item DTOs becomes a list of item entities. A value that cannot be
    converted is skipped, or re-raised when ``strict`` is true. ``strict``
    defaults to the ``BOOTSTARTER_DEBUG`` setting.

    Returns the number of members applied.
    """
    if patch is None:
        raise ValueError("patch must not be None")
    if target is None:
        raise ValueError("target must not be None")
    if strict is None:
        strict = debug_enabled()

    targets = writable_members(target)
    applied = 0
    for name in readable_members(patch):
        destination = targets.get(name)
        if destination is None:
            continue
        value = getattr(patch, name, _MISSING)
        if value is _MISSING or is_default_value(value):
            continue
        try:
            setattr(target, name, convert(value, destination.type))
        except (TypeError, ValueError, AttributeError) as exc:
            logger.debug(
                "patch member %r not applied to %s: %s", name, type(target).__name__, exc
            )
            if strict:
                raise
            continue
        applied += 1
    return applied


class DocumentPatcher:
    """Mixin for patch documents.

    Usage::

        class ProductPatch(DocumentPatcher, BaseModel):
            name: str | None = None
            price: float | None = None

        ProductPatch(price=9.5).apply_to(product)
    """

    __slots__ = ()

    def apply_to(self, target: Any, *, strict: Optional[bool] = None) -> int:
        return apply_non_null_to(self, target, strict=strict)


__all__ = ["DocumentPatcher", "apply_non_null_to"]
