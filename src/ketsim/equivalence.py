"""
Physical equivalence of States.

Strict ``==`` on :class:`~ketsim.state.State` demands bit-for-bit equal
amplitudes, which only holds for hand-built states. Results of gate
application carry round-off, so compare those with :func:`are_equivalent`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ketsim.ket import Ket

if TYPE_CHECKING:
    from ketsim.state import State


def kets_equivalent(a: Ket, b: Ket, atol: float) -> bool:
    """Same pattern and amplitudes at most ``atol`` apart."""
    return a.bits == b.bits and abs(a.amplitude - b.amplitude) <= atol


def are_equivalent(a: State, b: State, atol: Optional[float] = None) -> bool:
    """
    Order-independent, tolerance-based State comparison.

    Parameters
    ----------
    a, b : State
        States to compare.
    atol : float, optional
        Amplitude tolerance. Defaults to the looser of the two States'
        cancellation tolerances.

    Returns
    -------
    bool
        True when both States have the same width, the same set of basis
        patterns, and matching amplitudes per pattern.
    """
    if a.num_qubits != b.num_qubits:
        return False
    if len(a) != len(b):
        return False
    if atol is None:
        atol = max(a.atol, b.atol)

    for ket_a, ket_b in zip(a.sorted_kets(), b.sorted_kets()):
        if not kets_equivalent(ket_a, ket_b, atol):
            return False
    return True
