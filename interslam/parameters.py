"""A typed store of named parameters with defaults."""

from __future__ import annotations

import warnings
from typing import Any, TypeVar

T = TypeVar("T")


def _lexical_cast(text: str, target: type) -> Any:
    if target is bool:
        if text == "1":
            return True
        if text == "0":
            return False
        raise ValueError(f"cannot convert {text!r} to bool")
    if text != text.strip():
        raise ValueError(f"cannot convert {text!r} to {target.__name__}")
    try:
        return target(text)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"cannot convert {text!r} to {target.__name__}") from exc


class ParameterServer:
    """Parameters looked up by name; the first lookup fixes the default."""

    def __init__(self) -> None:
        self._params: dict[str, Any] = {}

    def param(self, name: str, default: T) -> T:
        """Return the parameter, storing ``default`` when it is absent.

        A stored string is converted to the type of ``default`` and kept
        converted. Any other type mismatch warns and yields ``default``.
        """
        value = self._params.setdefault(name, default)
        wanted = type(default)

        if type(value) is wanted:
            return value
        if isinstance(value, str):
            converted = _lexical_cast(value, wanted)
            self._params[name] = converted
            return converted

        warnings.warn(f"param {name}'s type does not match", RuntimeWarning, stacklevel=2)
        return default

    def set(self, name: str, value: Any) -> None:
        """Store a value for ``name``, replacing any earlier one."""
        self._params[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._params