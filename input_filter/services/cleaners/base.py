"""
Cleaner capability shared by rule objects.

Any object exposing ``clean(source)`` can be registered as a filter rule.
"""
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cleaner(Protocol):
    """Single-method cleaning capability."""

    def clean(self, source: Any) -> Any:
        """Return the cleaned form of ``source``."""
        ...


def to_text(source: Any) -> str:
    """
    Coerce an arbitrary input value to text.

    None becomes "", booleans become "1" / "", bytes are decoded as UTF-8
    (invalid sequences replaced), everything else goes through str().
    """
    if source is None:
        return ""
    if isinstance(source, bool):
        return "1" if source else ""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source).decode("utf-8", errors="replace")
    return str(source)
