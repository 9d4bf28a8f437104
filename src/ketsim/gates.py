"""
Gate descriptors.

The gate set is closed: the engine handles exactly these variants.

    - Single-qubit: H, X, T, Tdg
    - Controlled: CX, Toffoli (any number of controls)
    - Composite: named, append-only sequence of other gates

Primitive gates are frozen dataclasses described entirely by their qubit
indices. Amplitude constants live here next to the gates that use them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterable, List, Sequence, Tuple, Union

import numpy as np

from ketsim.errors import IndexOutOfRangeError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SQRT2_INV = float(1.0 / np.sqrt(2.0))
"""Hadamard normalisation."""

T_PHASE = complex(np.exp(1j * np.pi / 4))
"""Phase picked up by |1⟩ under T."""

TDG_PHASE = complex(np.exp(-1j * np.pi / 4))
"""Phase picked up by |1⟩ under T-dagger."""


def _check_qubit(qubit: int) -> None:
    if qubit < 0:
        raise IndexOutOfRangeError(qubit)


# ---------------------------------------------------------------------------
# Single-qubit gates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class H:
    """Hadamard gate."""
    target: int
    name: ClassVar[str] = "h"

    def __post_init__(self) -> None:
        _check_qubit(self.target)

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.target,)


@dataclass(frozen=True)
class X:
    """Pauli-X (NOT) gate."""
    target: int
    name: ClassVar[str] = "x"

    def __post_init__(self) -> None:
        _check_qubit(self.target)

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.target,)


@dataclass(frozen=True)
class T:
    """T gate: sqrt(S)."""
    target: int
    name: ClassVar[str] = "t"

    def __post_init__(self) -> None:
        _check_qubit(self.target)

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.target,)


@dataclass(frozen=True)
class Tdg:
    """T-dagger gate."""
    target: int
    name: ClassVar[str] = "tdg"

    def __post_init__(self) -> None:
        _check_qubit(self.target)

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.target,)


# ---------------------------------------------------------------------------
# Controlled gates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CX:
    """Controlled-NOT gate."""
    control: int
    target: int
    name: ClassVar[str] = "cx"

    def __post_init__(self) -> None:
        _check_qubit(self.control)
        _check_qubit(self.target)
        if self.control == self.target:
            raise ValueError(f"CX control and target are both qubit {self.target}")

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.control, self.target)


@dataclass(frozen=True)
class Toffoli:
    """
    Multi-controlled NOT: flips ``target`` when every control is set.

    ``controls`` is an ordered set; two controls give the textbook CCX.
    """
    controls: Tuple[int, ...]
    target: int
    name: ClassVar[str] = "ccx"

    def __post_init__(self) -> None:
        controls = tuple(self.controls)
        object.__setattr__(self, "controls", controls)
        for q in controls + (self.target,):
            _check_qubit(q)
        if len(set(controls)) != len(controls):
            raise ValueError(f"Duplicate controls in {controls}")
        if self.target in controls:
            raise ValueError(f"Toffoli target {self.target} is also a control")

    @property
    def qubits(self) -> Tuple[int, ...]:
        return self.controls + (self.target,)


# ---------------------------------------------------------------------------
# Composite
# ---------------------------------------------------------------------------

@dataclass
class Composite:
    """
    Named, reusable sequence of gates.

    Built incrementally; gates can only be appended.

    Example
    -------
    >>> from ketsim.gates import Composite, H, CX
    >>> bell = Composite("bell").append(H(0)).append(CX(0, 1))
    >>> len(bell)
    2
    """
    name: str
    gates: List[Gate] = field(default_factory=list)

    def __post_init__(self) -> None:
        gates = list(self.gates)
        self.gates = []
        self.extend(gates)

    def append(self, gate: Gate) -> Composite:
        if not isinstance(gate, GATE_TYPES):
            raise TypeError(f"Not a gate: {gate!r}")
        if _contains(gate, self):
            raise ValueError(f"Composite '{self.name}' cannot contain itself")
        self.gates.append(gate)
        return self

    def extend(self, gates: Iterable[Gate]) -> Composite:
        for gate in gates:
            self.append(gate)
        return self

    @property
    def qubits(self) -> Tuple[int, ...]:
        """Every qubit touched by the sequence, in first-use order."""
        seen: dict[int, None] = {}
        for gate in self.gates:
            for q in gate.qubits:
                seen.setdefault(q, None)
        return tuple(seen)

    def __len__(self) -> int:
        return len(self.gates)

    def __iter__(self):
        return iter(self.gates)


def _contains(gate: Gate, composite: Composite) -> bool:
    """True if ``composite`` is ``gate`` or nested anywhere inside it."""
    if gate is composite:
        return True
    if isinstance(gate, Composite):
        return any(_contains(sub_gate, composite) for sub_gate in gate.gates)
    return False


Gate = Union[H, X, T, Tdg, CX, Toffoli, Composite]

PRIMITIVE_GATES = (H, X, T, Tdg, CX, Toffoli)
GATE_TYPES = PRIMITIVE_GATES + (Composite,)


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------

def inverse(gate: Gate) -> Gate:
    """Adjoint of a gate. H, X, CX and Toffoli are their own inverse."""
    if isinstance(gate, T):
        return Tdg(gate.target)
    if isinstance(gate, Tdg):
        return T(gate.target)
    if isinstance(gate, Composite):
        return Composite(f"{gate.name}_inv", [inverse(g) for g in reversed(gate.gates)])
    return gate


def remap(gate: Gate, qubit_map: Sequence[int]) -> Gate:
    """Copy of ``gate`` with every qubit ``q`` replaced by ``qubit_map[q]``."""
    if isinstance(gate, (H, X, T, Tdg)):
        return type(gate)(qubit_map[gate.target])
    if isinstance(gate, CX):
        return CX(qubit_map[gate.control], qubit_map[gate.target])
    if isinstance(gate, Toffoli):
        return Toffoli(tuple(qubit_map[c] for c in gate.controls), qubit_map[gate.target])
    if isinstance(gate, Composite):
        return Composite(gate.name, [remap(g, qubit_map) for g in gate.gates])
    raise TypeError(f"Not a gate: {gate!r}")
