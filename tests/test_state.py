"""Tests for the sparse state container."""

import numpy as np
import pytest

from ketsim import Ket, State, WidthMismatchError
from ketsim.state import ATOL


@pytest.fixture
def plus_state():
    """(|0⟩ + |1⟩)/√2 built by hand."""
    s = 2 ** -0.5
    return State.from_kets([Ket([0], s), Ket([1], s)])


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def test_new_state_is_empty():
    state = State(3)
    assert state.num_qubits == 3
    assert len(state) == 0
    assert state.atol == ATOL


def test_zero_qubit_state():
    state = State(0)
    assert len(state) == 0
    assert state.num_qubits == 0


def test_negative_width_rejected():
    with pytest.raises(ValueError):
        State(-1)


def test_ground_state():
    state = State.ground(2)
    assert len(state) == 1
    assert state.amplitude((False, False)) == 1 + 0j


def test_from_kets_infers_width():
    state = State.from_kets([Ket([0, 0], 1.0), Ket([0, 1], 1.0)])
    assert state.num_qubits == 2
    assert Ket([0, 0]) in state
    assert Ket([0, 1]) in state


def test_from_kets_width_mismatch():
    with pytest.raises(WidthMismatchError):
        State.from_kets([Ket([0, 0], 1.0), Ket([0], 1.0)])


def test_from_kets_explicit_width_mismatch():
    with pytest.raises(WidthMismatchError):
        State.from_kets([Ket([0], 1.0)], num_qubits=2)


def test_width_mismatch_is_value_error():
    with pytest.raises(ValueError):
        State.from_kets([Ket([1], 1.0), Ket([1, 1], 1.0)])


def test_from_empty_list():
    with pytest.raises(ValueError):
        State.from_kets([])
    state = State.from_kets([], num_qubits=2)
    assert state.num_qubits == 2
    assert len(state) == 0


def test_from_kets_accumulates_duplicates():
    state = State.from_kets([Ket([1], 0.25), Ket([1], 0.5)])
    assert len(state) == 1
    assert state.amplitude((True,)) == 0.75


def test_from_ket_list_alias():
    state = State.from_ket_list([Ket([1, 0], 1.0)])
    assert state == State.from_kets([Ket([1, 0], 1.0)])


# ---------------------------------------------------------------------------
# Merge policy
# ---------------------------------------------------------------------------

def test_insert_new_ket():
    state = State(1)
    state.insert_or_accumulate(Ket([0], 0.5))
    assert state.amplitude((False,)) == 0.5


def test_insert_accumulates():
    state = State.ground(1)
    state.insert_or_accumulate(Ket([0], 0.5))
    assert len(state) == 1
    assert state.amplitude((False,)) == 1.5


def test_insert_zero_amplitude_is_noop():
    state = State(3)
    state.insert_or_accumulate(Ket([0, 1, 0], 0.0))
    assert len(state) == 0


def test_insert_negligible_amplitude_is_noop():
    state = State(1)
    state.insert_or_accumulate(Ket([1], 1e-9))
    assert len(state) == 0


def test_destructive_interference_removes_entry():
    state = State.from_kets([Ket([1], 1.0)])
    state.insert_or_accumulate(Ket([1], -1.0))
    assert len(state) == 0


def test_near_cancellation_removes_entry():
    state = State.from_kets([Ket([1], 1.0)])
    state.insert_or_accumulate(Ket([1], -1.0 + 1e-9j))
    assert len(state) == 0


def test_partial_cancellation_keeps_entry():
    state = State.from_kets([Ket([1], 1.0)])
    state.insert_or_accumulate(Ket([1], -0.5))
    assert state.amplitude((True,)) == 0.5


def test_insert_wrong_width():
    state = State(2)
    with pytest.raises(WidthMismatchError):
        state.insert_or_accumulate(Ket([1], 1.0))


def test_custom_tolerance():
    state = State(1, atol=0.1)
    state.insert_or_accumulate(Ket([0], 0.05))
    assert len(state) == 0
    state.insert_or_accumulate(Ket([0], 0.5))
    state.insert_or_accumulate(Ket([0], -0.45))
    assert len(state) == 0


# ---------------------------------------------------------------------------
# Removal
# ---------------------------------------------------------------------------

def test_remove_by_bits_and_ket():
    state = State.from_kets([Ket([0], 0.5), Ket([1], 0.5)])
    state.remove((False,))
    assert len(state) == 1
    state.remove(Ket([1], 123.0))
    assert len(state) == 0


def test_remove_absent_is_noop():
    state = State.ground(2)
    state.remove((True, True))
    assert len(state) == 1


def test_remove_zero_amplitude_on_clean_state():
    state = State.from_kets([Ket([0], 0.5), Ket([1], 0.5)])
    assert state.remove_zero_amplitude() == 0
    assert len(state) == 2


def test_scale_sweeps_vanishing_amplitudes():
    state = State.from_kets([Ket([0], 1.0), Ket([1], 1e-3)])
    state.scale(1e-4)
    assert len(state) == 1
    assert state.amplitude((False,)) == pytest.approx(1e-4)
    assert state.amplitude((True,)) == 0j


def test_scale_by_zero_empties_state():
    state = State.from_kets([Ket([0], 1.0), Ket([1], 1.0)])
    state.scale(0)
    assert len(state) == 0


def test_normalize():
    state = State.from_kets([Ket([0], 3.0), Ket([1], 4.0j)])
    state.normalize()
    assert state.norm() == pytest.approx(1.0)
    assert state.amplitude((False,)) == pytest.approx(0.6)
    assert state.amplitude((True,)) == pytest.approx(0.8j)


def test_normalize_empty_state():
    with pytest.raises(ValueError):
        State(1).normalize()


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------

def test_kets_are_copies(plus_state):
    for ket in plus_state.kets():
        ket.amplitude = 0
        ket.flip(0)
    assert plus_state.amplitude((False,)) == pytest.approx(2 ** -0.5)
    assert plus_state.amplitude((True,)) == pytest.approx(2 ** -0.5)


def test_iteration_yields_kets(plus_state):
    assert {ket.bits for ket in plus_state} == {(False,), (True,)}


def test_sorted_kets_orders_by_pattern():
    state = State.from_kets([Ket([1, 1], 1.0), Ket([0, 1], 1.0), Ket([1, 0], 1.0)])
    assert [k.bits for k in state.sorted_kets()] == [
        (False, True), (True, False), (True, True),
    ]


def test_norm(plus_state):
    assert plus_state.norm() == pytest.approx(1.0)
    assert State(2).norm() == 0.0


def test_probabilities():
    s = 2 ** -0.5
    state = State.from_kets([Ket([0, 0], s), Ket([1, 1], s)])
    probs = state.probabilities()
    assert list(probs) == ["00", "11"]
    assert probs["00"] == pytest.approx(0.5)
    assert probs["11"] == pytest.approx(0.5)


def test_to_statevector_little_endian():
    state = State.from_kets([Ket.from_int(2, 2, 1j)])
    np.testing.assert_allclose(state.to_statevector(), [0, 0, 1j, 0])


def test_contains():
    state = State.ground(2)
    assert (False, False) in state
    assert Ket([0, 0], 5.0) in state
    assert (True, False) not in state
    assert "00" not in state


# ---------------------------------------------------------------------------
# Equality and display
# ---------------------------------------------------------------------------

def test_strict_equality_is_order_independent():
    a = State.from_kets([Ket([0, 0], 1.0), Ket([0, 1], 1.0)])
    b = State.from_kets([Ket([0, 1], 1.0), Ket([0, 0], 1.0)])
    assert a == b


def test_strict_equality_requires_exact_amplitudes():
    a = State.from_kets([Ket([0], 1.0)])
    b = State.from_kets([Ket([0], 1.0 + 1e-12)])
    assert a != b
    assert a.are_equivalent(b)


def test_equality_checks_width():
    assert State(1) != State(2)


def test_state_is_unhashable():
    with pytest.raises(TypeError):
        hash(State(1))


def test_copy_is_independent(plus_state):
    clone = plus_state.copy()
    clone.insert_or_accumulate(Ket([0], 1.0))
    assert clone != plus_state
    assert plus_state.amplitude((False,)) == pytest.approx(2 ** -0.5)


def test_str():
    state = State.from_kets([Ket([0], 0.5), Ket([1], 0.5 + 0.5j)])
    assert str(state) == "(0.5+0i)|0⟩ + (0.5+0.5i)|1⟩"


def test_str_empty_state():
    assert str(State(2)) == "0"


def test_repr():
    assert repr(State.ground(3)) == "State(qubits=3, kets=1)"


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        State(1, atol=-1e-6)
