"""
Exception types raised by the simulator core.

Every error is raised synchronously at the point of violation. None of
them are retried; they abort the gate application (or circuit run) that
triggered them, so a partially built State is never handed back.
"""

from __future__ import annotations


class KetsimError(Exception):
    """Base class for all ketsim errors."""


class WidthMismatchError(KetsimError, ValueError):
    """Kets or States whose qubit counts disagree were combined."""

    def __init__(self, expected: int, got: int) -> None:
        super().__init__(f"Expected {expected}-qubit ket, got {got}-qubit ket")
        self.expected = expected
        self.got = got


class IndexOutOfRangeError(KetsimError, IndexError):
    """A bit or qubit index fell outside ``[0, width)``."""

    def __init__(self, index: int, width: int | None = None) -> None:
        if width is None:
            message = f"Qubit index {index} must be non-negative"
        else:
            message = f"Qubit index {index} out of range for {width}-qubit register"
        super().__init__(message)
        self.index = index
        self.width = width


class UnsupportedGateError(KetsimError, TypeError):
    """An object outside the closed gate set reached the engine."""

    def __init__(self, gate: object) -> None:
        super().__init__(f"Unsupported gate: {gate!r}")
        self.gate = gate
