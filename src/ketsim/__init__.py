"""
ketsim: sparse basis-ket quantum circuit simulator.

Features:
- Sparse state: only basis kets with non-negligible amplitude are stored
- Exact branch bookkeeping: interfering amplitudes accumulate or cancel
- Fluent API: Circuit(2).h(0).cx(0, 1).run()
- Composite gates: named, reusable gate sequences
- OpenQASM 2.0 front end and a `ketsim` command

Quick Start:
    >>> from ketsim import Circuit
    >>> state = Circuit(2).h(0).cx(0, 1).run()
    >>> print(state)
    (0.707+0i)|00⟩ + (0.707+0i)|11⟩

Engine level:
    >>> from ketsim import State, H, apply_to_state
    >>> state = apply_to_state(State.ground(1), H(0))
    >>> len(state)
    2
"""
__version__ = "0.3.0"

# Core components
from .errors import (
    KetsimError,
    WidthMismatchError,
    IndexOutOfRangeError,
    UnsupportedGateError,
)
from .ket import Ket, BitPattern
from .state import State, ATOL
from .equivalence import are_equivalent, kets_equivalent
from .gates import H, X, T, Tdg, CX, Toffoli, Composite, Gate
from .engine import apply_to_ket, apply_to_state, apply_gates

# Front end
from .circuit import Circuit
from .qasm import parse_qasm, load_qasm, QasmParseError

__all__ = [
    # Errors
    'KetsimError',
    'WidthMismatchError',
    'IndexOutOfRangeError',
    'UnsupportedGateError',
    # Core
    'Ket',
    'BitPattern',
    'State',
    'ATOL',
    'are_equivalent',
    'kets_equivalent',
    # Gates
    'H',
    'X',
    'T',
    'Tdg',
    'CX',
    'Toffoli',
    'Composite',
    'Gate',
    # Engine
    'apply_to_ket',
    'apply_to_state',
    'apply_gates',
    # Front end
    'Circuit',
    'parse_qasm',
    'load_qasm',
    'QasmParseError',
]
