"""Tests for basis kets."""

import pytest

from ketsim.errors import IndexOutOfRangeError
from ketsim.ket import Ket, bits_from_int, bits_label, bits_to_int, format_amplitude


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def test_ground_ket():
    ket = Ket.ground(3)
    assert ket.bits == (False, False, False)
    assert ket.amplitude == 1 + 0j
    assert ket.width == 3


def test_bits_are_coerced_to_bool():
    ket = Ket([0, 1, 1, 0], 0.5)
    assert ket.bits == (False, True, True, False)
    assert isinstance(ket.amplitude, complex)


def test_from_int_is_little_endian():
    ket = Ket.from_int(6, 3)
    assert ket.bits == (False, True, True)
    assert ket.index == 6
    assert ket.label == "110"


def test_bits_int_roundtrip_helpers():
    assert bits_from_int(5, 4) == (True, False, True, False)
    assert bits_to_int((True, False, True, False)) == 5
    assert bits_label((True, False, False)) == "001"


def test_bits_from_int_rejects_overflow():
    with pytest.raises(ValueError):
        bits_from_int(8, 3)
    with pytest.raises(ValueError):
        bits_from_int(-1, 3)


# ---------------------------------------------------------------------------
# Bit access
# ---------------------------------------------------------------------------

def test_get_and_flip():
    ket = Ket.ground(3)
    ket.flip(0)
    assert ket.get(0) is True
    assert ket.get(1) is False
    ket.flip(0)
    assert ket.get(0) is False


def test_flip_keeps_amplitude():
    ket = Ket([0, 0], 0.25 - 0.5j)
    ket.flip(1)
    assert ket.bits == (False, True)
    assert ket.amplitude == 0.25 - 0.5j


@pytest.mark.parametrize("index", [3, 10, -1])
def test_get_out_of_range(index):
    ket = Ket.ground(3)
    with pytest.raises(IndexOutOfRangeError):
        ket.get(index)


def test_flip_out_of_range_is_index_error():
    ket = Ket.ground(1)
    with pytest.raises(IndexError):
        ket.flip(1)
    assert ket.bits == (False,)


def test_copy_is_independent():
    ket = Ket([1, 0], 1j)
    clone = ket.copy()
    clone.flip(0)
    clone.amplitude = 2
    assert ket.bits == (True, False)
    assert ket.amplitude == 1j


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

def test_equality_ignores_amplitude():
    a = Ket([1, 0], 1.0)
    b = Ket([1, 0], -0.3j)
    assert a == b
    assert hash(a) == hash(b)
    assert a != Ket([0, 1], 1.0)


def test_set_deduplicates_on_bits():
    kets = {Ket([1], 1.0), Ket([1], 2.0), Ket([0], 1.0)}
    assert len(kets) == 2


def test_comparison_with_other_types():
    assert Ket([1], 1.0) != (True,)


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def test_str_puts_qubit_zero_rightmost():
    ket = Ket([0, 1, 0, 0], 1.0)
    assert str(ket) == "(1+0i)|0010⟩"


@pytest.mark.parametrize("amplitude,expected", [
    (0.5 + 0.5j, "(0.5+0.5i)"),
    (0.5 - 0.25j, "(0.5-0.25i)"),
    (2 ** -0.5, "(0.707+0i)"),
    (-1, "(-1+0i)"),
    (-0.0001 - 0.0001j, "(0+0i)"),
])
def test_format_amplitude(amplitude, expected):
    assert format_amplitude(complex(amplitude)) == expected


def test_repr():
    assert repr(Ket([1, 0], 1)) == "Ket(bits='01', amplitude=(1+0j))"
