"""Guard for required call parameters."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .errors import MissingParameterError


def _is_missing(value: Any) -> bool:
    # Containers count as present even when empty.
    if value is None:
        return True
    if isinstance(value, (Mapping, list, tuple, set)):
        return False
    return not value


def validate_params(params: Mapping[str, Any], required: Iterable[str]) -> None:
    """Raise :class:`MissingParameterError` for the first missing key in *required*.

    ``None`` and empty scalars (``""``, ``0``, ``False``) are missing.
    Keys are checked in the order given, so the error always names the
    earliest missing one.
    """
    for name in required:
        if _is_missing(params.get(name)):
            raise MissingParameterError(name)
