"""A recording shader and the drawable interface used by the scene views."""

from __future__ import annotations

import abc
import copy
from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass
class DrawCall:
    """One recorded draw: what was drawn and the uniforms in effect at that time."""

    kind: str
    payload: Any
    uniforms: dict[str, Any] = field(default_factory=dict)


def _copy_value(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.copy()
    if isinstance(value, (list, tuple)):
        return np.array(value)
    return value


class Shader:
    """Holds uniform values by name and records the draws issued against it."""

    def __init__(self) -> None:
        self.uniforms: dict[str, Any] = {}
        self.draw_calls: list[DrawCall] = []

    def set_uniform(self, name: str, value: Any) -> None:
        """Set a uniform; sequences are stored as arrays."""
        self.uniforms[name] = _copy_value(value)

    def get_uniform(self, name: str) -> Any:
        """Return the current value of a uniform; KeyError if it was never set."""
        try:
            return _copy_value(self.uniforms[name])
        except KeyError:
            raise KeyError(f"uniform {name!r} has not been set") from None

    def record_draw(self, kind: str, payload: Any) -> DrawCall:
        """Record a draw together with a snapshot of the current uniforms."""
        snapshot = {name: copy.deepcopy(value) for name, value in self.uniforms.items()}
        call = DrawCall(kind, payload, snapshot)
        self.draw_calls.append(call)
        return call


class Drawable(abc.ABC):
    """Anything that can draw itself with a shader."""

    @abc.abstractmethod
    def draw(self, shader: Shader) -> None:
        """Issue the draws for this object."""