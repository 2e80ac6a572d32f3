"""Choice of robust kernel applied to graph edges."""

from __future__ import annotations

KERNELS = (
    "NONE",
    "Huber",
    "Cauchy",
    "DCS",
    "Fair",
    "GemanMcClure",
    "PseudoHuber",
    "Staturated",
    "Tukey",
    "Welsch",
)


class RobustKernels:
    """A robust kernel selected by index into :data:`KERNELS`, with its delta."""

    def __init__(self, kernel_index: int = 1, delta: float = 0.01) -> None:
        if not 0 <= kernel_index < len(KERNELS):
            raise ValueError(f"kernel index {kernel_index} out of range")
        self.kernel_index = kernel_index
        self.delta = delta

    def kernel_type(self) -> str:
        """Name of the selected kernel."""
        return KERNELS[self.kernel_index]

    def __repr__(self) -> str:
        return f"RobustKernels({self.kernel_type()!r}, delta={self.delta})"