"""
Gate application on sparse states.

Two levels:

1. :func:`apply_to_ket` maps one ket to the list of kets it branches
   into. Nothing is merged at this level.
2. :func:`apply_to_state` runs the per-ket transform over every ket of a
   State and accumulates the outputs into a fresh State, where equal
   patterns from different branches add up or cancel.

Each application returns a new State and leaves its input untouched, so
a failed application never exposes a half-built result.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from ketsim.errors import IndexOutOfRangeError, UnsupportedGateError
from ketsim.gates import (
    CX,
    GATE_TYPES,
    H,
    SQRT2_INV,
    TDG_PHASE,
    T_PHASE,
    Composite,
    Gate,
    T,
    Tdg,
    Toffoli,
    X,
)
from ketsim.ket import Ket
from ketsim.state import State

logger = logging.getLogger(__name__)

KetResult = List[Ket]
"""Branches produced by one ket under one gate (any length)."""


# ---------------------------------------------------------------------------
# Per-ket transform
# ---------------------------------------------------------------------------

def apply_to_ket(gate: Gate, ket: Ket) -> KetResult:
    """
    Apply ``gate`` to a single basis ket.

    Parameters
    ----------
    gate : Gate
        Any member of the closed gate set.
    ket : Ket
        Input ket. It is not modified.

    Returns
    -------
    list[Ket]
        One ket for permutation and phase gates, two for H, and the
        unmerged product of every stage for a Composite.

    Raises
    ------
    IndexOutOfRangeError
        If an operand is outside the ket's width.
    UnsupportedGateError
        If ``gate`` is not one of the known gate types.
    """
    if isinstance(gate, H):
        kept = ket.copy()
        if kept.get(gate.target):
            kept.amplitude = -kept.amplitude
        kept.amplitude *= SQRT2_INV

        flipped = ket.copy()
        flipped.flip(gate.target)
        flipped.amplitude *= SQRT2_INV
        return [kept, flipped]

    if isinstance(gate, X):
        out = ket.copy()
        out.flip(gate.target)
        return [out]

    if isinstance(gate, T):
        out = ket.copy()
        if out.get(gate.target):
            out.amplitude *= T_PHASE
        return [out]

    if isinstance(gate, Tdg):
        out = ket.copy()
        if out.get(gate.target):
            out.amplitude *= TDG_PHASE
        return [out]

    if isinstance(gate, CX):
        out = ket.copy()
        if out.get(gate.control):
            out.flip(gate.target)
        return [out]

    if isinstance(gate, Toffoli):
        out = ket.copy()
        # Range-check the target even when a control is clear.
        out.get(gate.target)
        if all(out.get(c) for c in gate.controls):
            out.flip(gate.target)
        return [out]

    if isinstance(gate, Composite):
        kets = [ket.copy()]
        for sub_gate in gate.gates:
            staged: KetResult = []
            for k in kets:
                staged.extend(apply_to_ket(sub_gate, k))
            kets = staged
        return kets

    raise UnsupportedGateError(gate)


# ---------------------------------------------------------------------------
# State-level application
# ---------------------------------------------------------------------------

def _check_operands(gate: Gate, num_qubits: int) -> None:
    for q in gate.qubits:
        if not 0 <= q < num_qubits:
            raise IndexOutOfRangeError(q, num_qubits)


def apply_to_state(state: State, gate: Gate) -> State:
    """
    Apply ``gate`` to every ket of ``state`` and merge the results.

    Parameters
    ----------
    state : State
        Input state. It is not modified.
    gate : Gate
        Gate to apply. A Composite is applied constituent by constituent,
        merging after each one.

    Returns
    -------
    State
        New State with the same width and tolerance.
    """
    if not isinstance(gate, GATE_TYPES):
        raise UnsupportedGateError(gate)
    _check_operands(gate, state.num_qubits)

    if isinstance(gate, Composite):
        result = state
        for sub_gate in gate.gates:
            result = apply_to_state(result, sub_gate)
        return result if result is not state else state.copy()

    new_state = State(state.num_qubits, state.atol)
    for ket in state.kets():
        for out in apply_to_ket(gate, ket):
            new_state.insert_or_accumulate(out)

    logger.debug(
        "Applied %s: %d kets -> %d kets", gate, len(state), len(new_state)
    )
    return new_state


def apply_gates(state: State, gates: Iterable[Gate]) -> State:
    """Fold :func:`apply_to_state` over a gate sequence."""
    for gate in gates:
        state = apply_to_state(state, gate)
    return state
