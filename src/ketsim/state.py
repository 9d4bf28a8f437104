"""
Sparse superposition of basis kets.

Only basis states with non-negligible amplitude are stored. Amplitudes
that land on an existing pattern accumulate, and an entry whose
accumulated magnitude drops to the tolerance or below is removed, so
destructive interference makes a branch vanish instead of lingering as
round-off noise.

Memory grows with the number of live branches, not with 2^n:
    GHZ on 40 qubits: 2 entries
    H on every qubit of n: 2^n entries
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Union

import numpy as np
from numpy import ndarray

from ketsim.errors import WidthMismatchError
from ketsim.ket import BitPattern, Ket, bits_label, bits_to_int

ATOL = 1e-6
"""Magnitude at or below which an amplitude is treated as zero."""


class State:
    """
    Sparse n-qubit state keyed by bit pattern.

    Parameters
    ----------
    num_qubits : int
        Register width. Every stored pattern has exactly this length.
    atol : float
        Cancellation tolerance, also the default for equivalence checks.

    Example
    -------
    >>> from ketsim import State, Ket
    >>> state = State(1)
    >>> state.insert_or_accumulate(Ket([True], 1))
    >>> state.insert_or_accumulate(Ket([True], -1))
    >>> len(state)
    0
    """

    __slots__ = ("_num_qubits", "_atol", "_amplitudes")

    def __init__(self, num_qubits: int, atol: float = ATOL) -> None:
        if num_qubits < 0:
            raise ValueError(f"Qubit count must be non-negative, got {num_qubits}")
        if atol < 0:
            raise ValueError(f"Tolerance must be non-negative, got {atol}")
        self._num_qubits = num_qubits
        self._atol = atol
        self._amplitudes: Dict[BitPattern, complex] = {}

    # -- Construction -------------------------------------------------------

    @classmethod
    def ground(cls, num_qubits: int, atol: float = ATOL) -> State:
        """The all-zero basis state with amplitude 1."""
        state = cls(num_qubits, atol)
        state.insert_or_accumulate(Ket.ground(num_qubits))
        return state

    @classmethod
    def from_kets(
        cls,
        kets: Iterable[Ket],
        num_qubits: Optional[int] = None,
        atol: float = ATOL,
    ) -> State:
        """
        Build a State by accumulating each ket in order.

        Parameters
        ----------
        kets : iterable of Ket
            Kets to merge. All must share one width.
        num_qubits : int, optional
            Expected width. Inferred from the first ket when omitted.

        Raises
        ------
        WidthMismatchError
            If the kets disagree on width.
        ValueError
            If ``kets`` is empty and no width was given.
        """
        kets = list(kets)
        if num_qubits is None:
            if not kets:
                raise ValueError("Cannot infer qubit count from an empty ket list")
            num_qubits = kets[0].width
        for ket in kets:
            if ket.width != num_qubits:
                raise WidthMismatchError(num_qubits, ket.width)

        state = cls(num_qubits, atol)
        for ket in kets:
            state.insert_or_accumulate(ket)
        return state

    from_ket_list = from_kets

    # -- Properties ---------------------------------------------------------

    @property
    def num_qubits(self) -> int:
        return self._num_qubits

    @property
    def atol(self) -> float:
        return self._atol

    # -- Mutation -----------------------------------------------------------

    def insert_or_accumulate(self, ket: Ket) -> None:
        """
        Merge ``ket`` into the state.

        A negligible amplitude is ignored. A pattern already present has its
        amplitude incremented, and is dropped if the sum cancels to within
        tolerance. Anything else is inserted as a new entry.
        """
        if ket.width != self._num_qubits:
            raise WidthMismatchError(self._num_qubits, ket.width)
        if abs(ket.amplitude) <= self._atol:
            return

        existing = self._amplitudes.get(ket.bits)
        if existing is None:
            self._amplitudes[ket.bits] = ket.amplitude
            return

        total = existing + ket.amplitude
        if abs(total) > self._atol:
            self._amplitudes[ket.bits] = total
        else:
            del self._amplitudes[ket.bits]

    def remove(self, bits: Union[BitPattern, Ket]) -> None:
        """Delete the entry for an exact pattern; no-op if absent."""
        if isinstance(bits, Ket):
            bits = bits.bits
        self._amplitudes.pop(tuple(bits), None)

    def remove_zero_amplitude(self) -> int:
        """Sweep out entries within tolerance of zero. Returns how many went."""
        dead = [bits for bits, amp in self._amplitudes.items() if abs(amp) <= self._atol]
        for bits in dead:
            del self._amplitudes[bits]
        return len(dead)

    def scale(self, factor: complex) -> None:
        """Multiply every amplitude by ``factor`` in place."""
        for bits in self._amplitudes:
            self._amplitudes[bits] *= factor
        self.remove_zero_amplitude()

    def normalize(self) -> None:
        """Rescale so the squared amplitudes sum to one."""
        norm = self.norm()
        if norm == 0.0:
            raise ValueError("Cannot normalize an empty state")
        self.scale(1.0 / norm)

    # -- Inspection ---------------------------------------------------------

    def amplitude(self, bits: Union[BitPattern, Ket]) -> complex:
        """Amplitude of a pattern, ``0j`` when it is not stored."""
        if isinstance(bits, Ket):
            bits = bits.bits
        return self._amplitudes.get(tuple(bits), 0j)

    def kets(self) -> Iterator[Ket]:
        """Yield a copy of every stored ket, in storage order."""
        for bits, amplitude in self._amplitudes.items():
            yield Ket(bits, amplitude)

    def sorted_kets(self) -> List[Ket]:
        """Copies of every stored ket, ordered by bit pattern."""
        return [Ket(bits, self._amplitudes[bits]) for bits in sorted(self._amplitudes)]

    def norm(self) -> float:
        """Euclidean norm of the amplitude vector."""
        if not self._amplitudes:
            return 0.0
        amps = np.fromiter(self._amplitudes.values(), dtype=np.complex128)
        return float(np.sqrt(np.sum(np.abs(amps) ** 2)))

    def probabilities(self) -> Dict[str, float]:
        """
        Probability mass per stored pattern.

        Returns
        -------
        dict[str, float]
            Display label (qubit 0 rightmost) to ``|amplitude|^2``, sorted
            by bit pattern.
        """
        return {
            bits_label(bits): float(abs(self._amplitudes[bits]) ** 2)
            for bits in sorted(self._amplitudes)
        }

    def to_statevector(self) -> ndarray:
        """
        Dense complex128 export, index ``i`` = little-endian pattern.

        Allocates 2^n entries; meant for inspecting small registers.
        """
        vector = np.zeros(2 ** self._num_qubits, dtype=np.complex128)
        for bits, amplitude in self._amplitudes.items():
            vector[bits_to_int(bits)] = amplitude
        return vector

    def are_equivalent(self, other: State, atol: Optional[float] = None) -> bool:
        """Tolerance-based, order-independent comparison."""
        from ketsim.equivalence import are_equivalent

        return are_equivalent(self, other, atol)

    def copy(self) -> State:
        new = State(self._num_qubits, self._atol)
        new._amplitudes = dict(self._amplitudes)
        return new

    # -- Dunder -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._amplitudes)

    def __iter__(self) -> Iterator[Ket]:
        return self.kets()

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Ket):
            return item.bits in self._amplitudes
        if isinstance(item, tuple):
            return item in self._amplitudes
        return False

    def __eq__(self, other: object) -> bool:
        # Exact amplitudes; use are_equivalent for floating-point results.
        if not isinstance(other, State):
            return NotImplemented
        return (
            self._num_qubits == other._num_qubits
            and self._amplitudes == other._amplitudes
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"State(qubits={self._num_qubits}, kets={len(self._amplitudes)})"

    def __str__(self) -> str:
        if not self._amplitudes:
            return "0"
        return " + ".join(str(ket) for ket in self.sorted_kets())
