"""
Quantum circuit representation.

Provides a builder-style API that records gates and runs them on a sparse
state.

Example
-------
>>> from ketsim import Circuit
>>> qc = Circuit(2).h(0).cx(0, 1)
>>> print(qc.run())
(0.707+0i)|00⟩ + (0.707+0i)|11⟩
"""

from __future__ import annotations

import copy
import logging
import re
from typing import List, Optional, Sequence, Tuple

from numpy import ndarray

from ketsim import gates as g
from ketsim.engine import apply_to_state
from ketsim.errors import IndexOutOfRangeError, WidthMismatchError
from ketsim.gates import Composite, Gate
from ketsim.state import ATOL, State

logger = logging.getLogger(__name__)


class Circuit:
    """
    Ordered list of gates on an ``n_qubits`` register.

    Parameters
    ----------
    n_qubits : int
        Number of quantum bits.
    name : str, optional
        Circuit name, used when packaged as a Composite.
    """

    def __init__(self, n_qubits: int, name: str = "circuit") -> None:
        if n_qubits < 1:
            raise ValueError(f"Need at least 1 qubit, got {n_qubits}")
        self.n_qubits = n_qubits
        self.name = name
        self._gates: List[Gate] = []

    # -- Properties ---------------------------------------------------------

    @property
    def gates(self) -> List[Gate]:
        """Gates in application order."""
        return list(self._gates)

    @property
    def num_gates(self) -> int:
        """Number of top-level gates (a Composite counts once)."""
        return len(self._gates)

    @property
    def depth(self) -> int:
        """Circuit depth (longest path through any qubit)."""
        if not self._gates:
            return 0
        qubit_depth = [0] * self.n_qubits
        for gate in self._gates:
            qubits = gate.qubits
            if not qubits:
                continue
            max_d = max(qubit_depth[q] for q in qubits)
            for q in qubits:
                qubit_depth[q] = max_d + 1
        return max(qubit_depth)

    # -- Internal helpers ---------------------------------------------------

    def _validate_qubits(self, qubits: Sequence[int]) -> None:
        for q in qubits:
            if not 0 <= q < self.n_qubits:
                raise IndexOutOfRangeError(q, self.n_qubits)

    def _check_distinct(self, qubits: Sequence[int]) -> None:
        if len(set(qubits)) != len(qubits):
            raise ValueError(f"Duplicate qubits in {tuple(qubits)}")

    # -- Gates --------------------------------------------------------------

    def append(self, gate: Gate) -> Circuit:
        """Add any gate, including a Composite, and return self for chaining."""
        if not isinstance(gate, g.GATE_TYPES):
            raise TypeError(f"Not a gate: {gate!r}")
        self._validate_qubits(gate.qubits)
        self._gates.append(gate)
        return self

    def h(self, qubit: int) -> Circuit:
        """Hadamard gate."""
        self._validate_qubits((qubit,))
        return self.append(g.H(qubit))

    def x(self, qubit: int) -> Circuit:
        """Pauli-X gate."""
        self._validate_qubits((qubit,))
        return self.append(g.X(qubit))

    def t(self, qubit: int) -> Circuit:
        """T gate."""
        self._validate_qubits((qubit,))
        return self.append(g.T(qubit))

    def tdg(self, qubit: int) -> Circuit:
        """T-dagger gate."""
        self._validate_qubits((qubit,))
        return self.append(g.Tdg(qubit))

    def cx(self, control: int, target: int) -> Circuit:
        """Controlled-NOT (CNOT) gate."""
        self._validate_qubits((control, target))
        self._check_distinct((control, target))
        return self.append(g.CX(control, target))

    def cnot(self, control: int, target: int) -> Circuit:
        """Alias for cx."""
        return self.cx(control, target)

    def ccx(self, c0: int, c1: int, target: int) -> Circuit:
        """Toffoli (CCX) gate."""
        return self.mcx((c0, c1), target)

    def toffoli(self, c0: int, c1: int, target: int) -> Circuit:
        """Alias for ccx."""
        return self.ccx(c0, c1, target)

    def mcx(self, controls: Sequence[int], target: int) -> Circuit:
        """NOT on ``target`` controlled by every qubit in ``controls``."""
        qubits = tuple(controls) + (target,)
        self._validate_qubits(qubits)
        self._check_distinct(qubits)
        return self.append(g.Toffoli(tuple(controls), target))

    # -- Composition --------------------------------------------------------

    def to_composite(self, name: Optional[str] = None) -> Composite:
        """Package the gate list as a reusable Composite."""
        return Composite(name or self.name, list(self._gates))

    def inverse(self) -> Circuit:
        """Return the inverse (adjoint) circuit."""
        inv = Circuit(self.n_qubits, name=f"{self.name}_inv")
        for gate in reversed(self._gates):
            inv._gates.append(g.inverse(gate))
        return inv

    def copy(self) -> Circuit:
        """Return a deep copy of this circuit."""
        return copy.deepcopy(self)

    # -- Execution ----------------------------------------------------------

    def run(self, initial_state: Optional[State] = None, atol: float = ATOL) -> State:
        """
        Simulate the circuit.

        Parameters
        ----------
        initial_state : State, optional
            Starting state. Defaults to |0...0⟩.
        atol : float
            Cancellation tolerance for the default starting state.

        Returns
        -------
        State
            Final sparse state.
        """
        if initial_state is None:
            state = State.ground(self.n_qubits, atol)
        else:
            if initial_state.num_qubits != self.n_qubits:
                raise WidthMismatchError(self.n_qubits, initial_state.num_qubits)
            state = initial_state

        for gate in self._gates:
            state = apply_to_state(state, gate)

        logger.info(
            "Ran %s: %d gates on %d qubits, %d kets in final state",
            self.name, len(self._gates), self.n_qubits, len(state),
        )
        return state

    def statevector(self) -> ndarray:
        """Dense little-endian export of :meth:`run`."""
        return self.run().to_statevector()

    # -- Display ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._gates)

    def __repr__(self) -> str:
        return (
            f"Circuit(n_qubits={self.n_qubits}, depth={self.depth}, "
            f"gates={self.num_gates})"
        )

    # -- QASM export --------------------------------------------------------

    def to_qasm(self) -> str:
        """Export circuit as OpenQASM 2.0 string."""
        lines = [
            "OPENQASM 2.0;",
            'include "qelib1.inc";',
        ]
        defined: List[Tuple[Composite, str]] = []
        for gate in self._gates:
            _emit_definitions(gate, lines, defined)
        lines.append(f"qreg q[{self.n_qubits}];")

        for gate in self._gates:
            if not gate.qubits:
                continue
            qubits_str = ",".join(f"q[{q}]" for q in gate.qubits)
            lines.append(f"{_qasm_name(gate, defined)} {qubits_str};")

        return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# QASM export helpers
# ---------------------------------------------------------------------------

# Names the parser claims for itself: built-in gates and keywords.
_RESERVED_NAMES = frozenset({
    "h", "x", "t", "tdg", "cx", "cnot", "ccx", "toffoli", "mcx",
    "OPENQASM", "include", "qreg", "creg", "gate", "measure",
    "barrier", "if", "reset", "opaque",
})


def _qasm_name(gate: Gate, defined: List[Tuple[Composite, str]]) -> str:
    if isinstance(gate, Composite):
        for composite, name in defined:
            if composite == gate:
                return name
        raise KeyError(f"No definition emitted for composite '{gate.name}'")
    if isinstance(gate, g.Toffoli) and len(gate.controls) != 2:
        return "mcx"
    return gate.name


def _definition_name(name: str, taken: set) -> str:
    """A valid identifier for ``name`` that is neither reserved nor taken."""
    base = re.sub(r"[^a-zA-Z0-9_]", "_", name) or "gate"
    if not re.match(r"[a-zA-Z_]", base):
        base = f"g_{base}"
    if base in _RESERVED_NAMES:
        base = f"{base}_gate"
    candidate, n = base, 1
    while candidate in taken:
        candidate = f"{base}_{n}"
        n += 1
    return candidate


def _emit_definitions(
    gate: Gate, lines: List[str], defined: List[Tuple[Composite, str]]
) -> None:
    """
    Write ``gate`` blocks for a Composite and any Composites it contains.

    Composites are matched by content, so two different bodies that share
    a name are written under distinct identifiers.
    """
    if not isinstance(gate, Composite) or not gate.qubits:
        return
    if any(composite == gate for composite, _ in defined):
        return
    for sub_gate in gate.gates:
        _emit_definitions(sub_gate, lines, defined)

    name = _definition_name(gate.name, {taken for _, taken in defined})
    formal = {q: f"a{i}" for i, q in enumerate(gate.qubits)}
    body = []
    for sub_gate in gate.gates:
        if not sub_gate.qubits:
            continue
        args = ",".join(formal[q] for q in sub_gate.qubits)
        body.append(f"  {_qasm_name(sub_gate, defined)} {args};")
    lines.append(f"gate {name} {','.join(formal.values())} {{")
    lines.extend(body)
    lines.append("}")
    defined.append((gate, name))
