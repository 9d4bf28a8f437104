"""
Basis kets: one classical bit pattern weighted by a complex amplitude.

Bit ``i`` of a pattern is qubit ``i``. Patterns are stored as plain
``tuple[bool, ...]`` so they can key a dict directly; the amplitude is
associated data and takes no part in equality or hashing.

Example
-------
>>> from ketsim.ket import Ket
>>> ket = Ket.ground(3)
>>> ket.flip(0)
>>> str(ket)
'(1+0i)|001⟩'
"""

from __future__ import annotations

from typing import Iterable, Tuple

from ketsim.errors import IndexOutOfRangeError

BitPattern = Tuple[bool, ...]
"""Fixed-width bit pattern, index = qubit position."""


# ---------------------------------------------------------------------------
# Bit pattern helpers
# ---------------------------------------------------------------------------

def bits_from_int(value: int, width: int) -> BitPattern:
    """Little-endian pattern: bit ``i`` of ``value`` becomes qubit ``i``."""
    if value < 0 or value >= 1 << width:
        raise ValueError(f"Value {value} does not fit in {width} bits")
    return tuple(bool((value >> i) & 1) for i in range(width))


def bits_to_int(bits: BitPattern) -> int:
    """Inverse of :func:`bits_from_int`."""
    value = 0
    for i, bit in enumerate(bits):
        if bit:
            value |= 1 << i
    return value


def bits_label(bits: BitPattern) -> str:
    """Display label with qubit 0 as the rightmost character."""
    return "".join("1" if bit else "0" for bit in reversed(bits))


def format_amplitude(amplitude: complex) -> str:
    """Render an amplitude as ``(a+bi)`` rounded to three decimals."""
    re = round(amplitude.real, 3) + 0.0
    im = round(amplitude.imag, 3) + 0.0
    sign = "-" if im < 0 else "+"
    return f"({re:g}{sign}{abs(im):g}i)"


# ---------------------------------------------------------------------------
# Ket
# ---------------------------------------------------------------------------

class Ket:
    """
    A basis state of an n-qubit register with its amplitude.

    Two kets compare equal (and hash equal) when their bit patterns match,
    whatever their amplitudes. Use :func:`ketsim.equivalence.kets_equivalent`
    to compare amplitudes as well.

    Parameters
    ----------
    bits : iterable
        Bit values, index = qubit. Any truthy/falsy values are accepted.
    amplitude : complex
        Complex coefficient of this basis state.
    """

    __slots__ = ("bits", "amplitude")

    def __init__(self, bits: Iterable[object], amplitude: complex = 1 + 0j) -> None:
        self.bits: BitPattern = tuple(bool(b) for b in bits)
        self.amplitude = complex(amplitude)

    @classmethod
    def ground(cls, num_qubits: int) -> Ket:
        """All-zero ket of width ``num_qubits`` with amplitude 1."""
        return cls((False,) * num_qubits, 1 + 0j)

    @classmethod
    def from_int(cls, value: int, width: int, amplitude: complex = 1 + 0j) -> Ket:
        """Build a ket from a little-endian integer encoding."""
        return cls(bits_from_int(value, width), amplitude)

    # -- Properties ---------------------------------------------------------

    @property
    def width(self) -> int:
        """Number of qubits in the pattern."""
        return len(self.bits)

    @property
    def index(self) -> int:
        """Little-endian integer encoding of the pattern."""
        return bits_to_int(self.bits)

    @property
    def label(self) -> str:
        return bits_label(self.bits)

    # -- Bit access ---------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.bits):
            raise IndexOutOfRangeError(index, len(self.bits))

    def get(self, index: int) -> bool:
        """Return the bit for qubit ``index``."""
        self._check_index(index)
        return self.bits[index]

    def flip(self, index: int) -> None:
        """Toggle the bit for qubit ``index`` in place."""
        self._check_index(index)
        bits = list(self.bits)
        bits[index] = not bits[index]
        self.bits = tuple(bits)

    def copy(self) -> Ket:
        return Ket(self.bits, self.amplitude)

    # -- Identity -----------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Ket):
            return self.bits == other.bits
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.bits)

    def __repr__(self) -> str:
        return f"Ket(bits={self.label!r}, amplitude={self.amplitude!r})"

    def __str__(self) -> str:
        return f"{format_amplitude(self.amplitude)}|{self.label}⟩"
