"""
Pure-Python OpenQASM 2.0 parser.

Parses the subset of OpenQASM 2.0 that the sparse engine can run into a
ketsim Circuit.

Supported features:
    - OPENQASM 2.0 header
    - include "qelib1.inc" (ignored, gates are built-in)
    - qreg, creg declarations (several qregs are laid out in order)
    - Gates: h, x, t, tdg, cx (cnot), ccx (toffoli), mcx (last operand
      is the target)
    - Register broadcast: ``h q;`` applies h to every qubit of q
    - Custom gate definitions (gate ... { ... }), run as Composite gates
    - measure, barrier (accepted, no effect on the state)
    - Single-line (//) and multi-line comments

Rejected:
    - Parameterised gates, reset, if, opaque
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from ketsim import gates as g
from ketsim.circuit import Circuit
from ketsim.errors import KetsimError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

@dataclass
class Token:
    kind: str  # KEYWORD, IDENT, NUMBER, LPAREN, RPAREN, etc.
    value: str
    line: int

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, line={self.line})"


# Token patterns (order matters)
_TOKEN_PATTERNS = [
    ("COMMENT_ML", r"/\*.*?\*/"),
    ("COMMENT", r"//[^\n]*"),
    ("FLOAT", r"\d+\.\d*(?:[eE][+-]?\d+)?|\d+[eE][+-]?\d+"),
    ("INT", r"\d+"),
    ("ARROW", r"->"),
    ("EQ", r"=="),
    ("SEMICOLON", r";"),
    ("COMMA", r","),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("LBRACKET", r"\["),
    ("RBRACKET", r"\]"),
    ("LBRACE", r"\{"),
    ("RBRACE", r"\}"),
    ("STRING", r'"[^"]*"'),
    ("IDENT", r"[a-zA-Z_][a-zA-Z0-9_]*"),
    ("NEWLINE", r"\n"),
    ("SKIP", r"[ \t\r]+"),
    ("MISMATCH", r"."),
]

_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_PATTERNS), re.DOTALL)

_KEYWORDS = {
    "OPENQASM", "include", "qreg", "creg", "gate", "measure",
    "barrier", "if", "reset", "opaque",
}


def _tokenize(source: str) -> list[Token]:
    """Tokenize OpenQASM source into a list of tokens."""
    tokens = []
    line = 1

    for match in _TOKEN_RE.finditer(source):
        kind = match.lastgroup
        value = match.group()

        if kind == "NEWLINE":
            line += 1
            continue
        if kind in ("SKIP", "COMMENT", "COMMENT_ML"):
            line += value.count("\n")
            continue
        if kind == "MISMATCH":
            raise QasmParseError(f"Unexpected character {value!r}", line)

        if kind == "IDENT" and value in _KEYWORDS:
            kind = "KEYWORD"

        if kind in ("FLOAT", "INT"):
            kind = "NUMBER"

        tokens.append(Token(kind, value, line))

    return tokens


# ---------------------------------------------------------------------------
# Built-in gates
# ---------------------------------------------------------------------------

# name -> (operand count or None for "one or more", factory)
_BUILTINS: dict[str, tuple[Optional[int], Callable[[Sequence[int]], g.Gate]]] = {
    "h": (1, lambda q: g.H(q[0])),
    "x": (1, lambda q: g.X(q[0])),
    "t": (1, lambda q: g.T(q[0])),
    "tdg": (1, lambda q: g.Tdg(q[0])),
    "cx": (2, lambda q: g.CX(q[0], q[1])),
    "cnot": (2, lambda q: g.CX(q[0], q[1])),
    "ccx": (3, lambda q: g.Toffoli(tuple(q[:2]), q[2])),
    "toffoli": (3, lambda q: g.Toffoli(tuple(q[:2]), q[2])),
    "mcx": (None, lambda q: g.Toffoli(tuple(q[:-1]), q[-1])),
}

SUPPORTED_GATES = tuple(_BUILTINS)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class QasmParseError(KetsimError):
    """Error during QASM parsing."""
    def __init__(self, message: str, line: int = 0) -> None:
        super().__init__(f"Line {line}: {message}" if line else message)
        self.line = line


@dataclass
class _GateDef:
    """User-defined gate from a 'gate' declaration."""
    name: str
    qubits: list[str]  # formal qubit names
    body: list[tuple[str, list[str], int]]  # (gate name, formal args, line)


# A qubit operand: (register, index) with index None for a whole register.
_QubitRef = tuple[str, Union[int, None]]


class QasmParser:
    """
    Pure-Python OpenQASM 2.0 parser.

    Converts OpenQASM source into a ketsim Circuit.

    Example
    -------
    >>> from ketsim.qasm import QasmParser
    >>> qasm = '''
    ... OPENQASM 2.0;
    ... include "qelib1.inc";
    ... qreg q[2];
    ... h q[0];
    ... cx q[0],q[1];
    ... '''
    >>> circuit = QasmParser().parse(qasm)
    """

    def __init__(self) -> None:
        self._qregs: dict[str, int] = {}  # name → size
        self._cregs: dict[str, int] = {}
        self._gate_defs: dict[str, _GateDef] = {}
        self._tokens: list[Token] = []
        self._pos: int = 0
        self._ignored = 0

    def parse(self, source: str) -> Circuit:
        """
        Parse OpenQASM 2.0 source and return a Circuit.

        Parameters
        ----------
        source : str
            OpenQASM 2.0 source code.

        Returns
        -------
        Circuit
            Parsed circuit, gates in program order.
        """
        self._tokens = _tokenize(source)
        self._pos = 0
        self._qregs = {}
        self._cregs = {}
        self._gate_defs = {}
        self._ignored = 0

        self._parse_header()

        instructions: list[tuple[str, list[_QubitRef], int]] = []
        while self._pos < len(self._tokens):
            self._parse_statement(instructions)

        total_qubits = sum(self._qregs.values())
        if total_qubits == 0:
            raise QasmParseError("No quantum register declared")
        circuit = Circuit(total_qubits)

        # Map register.index → flat qubit index
        qubit_offset: dict[str, int] = {}
        offset = 0
        for name, size in self._qregs.items():
            qubit_offset[name] = offset
            offset += size

        for gate_name, refs, line in instructions:
            for operands in self._broadcast(refs, line):
                flat = [qubit_offset[reg] + idx for reg, idx in operands]
                circuit.append(self._build_gate(gate_name, flat, line))

        if self._ignored:
            logger.warning(
                "Ignored %d measure statement(s); the final state is unmeasured",
                self._ignored,
            )
        return circuit

    # -- Header parsing -----------------------------------------------------

    def _parse_header(self) -> None:
        """Parse OPENQASM version and include statements."""
        if self._peek_keyword("OPENQASM"):
            self._advance()  # OPENQASM
            version = self._expect("NUMBER")
            logger.debug("OpenQASM version %s", version)
            self._expect("SEMICOLON")

        while self._peek_keyword("include"):
            self._advance()  # include
            self._expect("STRING")  # "qelib1.inc"
            self._expect("SEMICOLON")

    # -- Statement parsing --------------------------------------------------

    def _parse_statement(self, instructions: list) -> None:
        """Parse a single statement."""
        tok = self._current()
        if tok is None:
            return

        if tok.kind == "KEYWORD":
            if tok.value == "qreg":
                self._parse_register(self._qregs)
            elif tok.value == "creg":
                self._parse_register(self._cregs)
            elif tok.value == "gate":
                self._parse_gate_def()
            elif tok.value == "measure":
                self._parse_measure()
            elif tok.value == "barrier":
                self._skip_to_semicolon()
            else:
                raise QasmParseError(f"'{tok.value}' is not supported", tok.line)
        elif tok.kind == "IDENT":
            self._parse_gate_application(instructions)
        elif tok.kind == "SEMICOLON":
            self._advance()
        else:
            raise QasmParseError(f"Unexpected token: {tok}", tok.line)

    def _parse_register(self, registers: dict[str, int]) -> None:
        tok = self._advance()  # qreg / creg
        name = self._expect("IDENT")
        self._expect("LBRACKET")
        size = self._expect_int()
        self._expect("RBRACKET")
        self._expect("SEMICOLON")
        if name in self._qregs or name in self._cregs:
            raise QasmParseError(f"Register '{name}' already declared", tok.line)
        registers[name] = size

    def _parse_gate_def(self) -> None:
        """Parse: gate name qubits { body }"""
        tok = self._advance()  # gate
        name = self._expect("IDENT")
        if name in _BUILTINS or name in self._gate_defs:
            raise QasmParseError(f"Gate '{name}' already defined", tok.line)
        if self._peek("LPAREN"):
            raise QasmParseError(
                f"Parameterised gate '{name}' is not supported", tok.line
            )

        qubits = []
        while not self._peek("LBRACE"):
            qubits.append(self._expect("IDENT"))
            if self._peek("COMMA"):
                self._advance()
        if len(set(qubits)) != len(qubits):
            raise QasmParseError(f"Duplicate qubit names in gate '{name}'", tok.line)

        self._expect("LBRACE")
        body = []
        while not self._peek("RBRACE"):
            stmt = self._current()
            if stmt is None:
                raise QasmParseError("Unexpected end of file in gate definition")
            if stmt.kind == "KEYWORD" and stmt.value == "barrier":
                self._skip_to_semicolon()
                continue
            sub_name = self._expect("IDENT")
            if sub_name not in _BUILTINS and sub_name not in self._gate_defs:
                raise QasmParseError(f"Unknown gate: '{sub_name}'", stmt.line)
            if self._peek("LPAREN"):
                raise QasmParseError(
                    f"Parameterised gate '{sub_name}' is not supported", stmt.line
                )
            args = []
            while not self._peek("SEMICOLON"):
                arg = self._expect("IDENT")
                if arg not in qubits:
                    raise QasmParseError(
                        f"'{arg}' is not a qubit of gate '{name}'", stmt.line
                    )
                args.append(arg)
                if self._peek("COMMA"):
                    self._advance()
            self._expect("SEMICOLON")
            body.append((sub_name, args, stmt.line))
        self._expect("RBRACE")

        self._gate_defs[name] = _GateDef(name=name, qubits=qubits, body=body)

    def _parse_measure(self) -> None:
        self._advance()  # measure
        self._parse_qubit_ref()
        self._expect("ARROW")
        self._parse_qubit_ref()
        self._expect("SEMICOLON")
        self._ignored += 1

    def _parse_gate_application(self, instructions: list) -> None:
        """Parse: gate_name qubit_list;"""
        name_tok = self._advance()
        gate_name = name_tok.value

        if self._peek("LPAREN"):
            raise QasmParseError(
                f"Parameterised gate '{gate_name}' is not supported", name_tok.line
            )

        refs = []
        while not self._peek("SEMICOLON"):
            refs.append(self._parse_qubit_ref())
            if self._peek("COMMA"):
                self._advance()

        self._expect("SEMICOLON")
        instructions.append((gate_name, refs, name_tok.line))

    def _parse_qubit_ref(self) -> _QubitRef:
        """Parse 'reg[index]' or 'reg'."""
        tok = self._current()
        name = self._expect("IDENT")
        if name not in self._qregs and name not in self._cregs:
            raise QasmParseError(f"Undeclared register '{name}'", tok.line)
        size = self._qregs.get(name, self._cregs.get(name))
        if self._peek("LBRACKET"):
            self._advance()
            idx = self._expect_int()
            self._expect("RBRACKET")
            if idx >= size:
                raise QasmParseError(
                    f"Index {idx} out of range for register '{name}[{size}]'", tok.line
                )
            return name, idx
        return name, None

    # -- Gate construction --------------------------------------------------

    def _broadcast(self, refs: list[_QubitRef], line: int) -> list[list[tuple[str, int]]]:
        """Expand whole-register operands into one operand list per index."""
        for reg, _ in refs:
            if reg not in self._qregs:
                raise QasmParseError(f"'{reg}' is not a quantum register", line)

        sizes = {self._qregs[reg] for reg, idx in refs if idx is None}
        if not sizes:
            return [[(reg, idx) for reg, idx in refs]]
        if len(sizes) > 1:
            raise QasmParseError("Broadcast over registers of different sizes", line)
        size = sizes.pop()
        return [
            [(reg, i if idx is None else idx) for reg, idx in refs]
            for i in range(size)
        ]

    def _build_gate(self, name: str, qubits: list[int], line: int) -> g.Gate:
        """Turn a gate name and flat operands into a Gate value."""
        if name in _BUILTINS:
            arity, factory = _BUILTINS[name]
            if arity is None and not qubits:
                raise QasmParseError(f"Gate '{name}' needs at least one qubit", line)
            if arity is not None and len(qubits) != arity:
                raise QasmParseError(
                    f"Gate '{name}' takes {arity} qubit(s), got {len(qubits)}", line
                )
            try:
                return factory(qubits)
            except (ValueError, IndexError) as exc:
                raise QasmParseError(str(exc), line) from exc

        if name in self._gate_defs:
            gate_def = self._gate_defs[name]
            if len(qubits) != len(gate_def.qubits):
                raise QasmParseError(
                    f"Gate '{name}' takes {len(gate_def.qubits)} qubit(s), "
                    f"got {len(qubits)}",
                    line,
                )
            if len(set(qubits)) != len(qubits):
                raise QasmParseError(f"Duplicate qubits in {tuple(qubits)}", line)
            qubit_map = dict(zip(gate_def.qubits, qubits))
            composite = g.Composite(name)
            for sub_name, args, sub_line in gate_def.body:
                composite.append(
                    self._build_gate(sub_name, [qubit_map[a] for a in args], sub_line)
                )
            return composite

        raise QasmParseError(f"Unknown gate: '{name}'", line)

    # -- Token helpers ------------------------------------------------------

    def _current(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _advance(self) -> Token | None:
        tok = self._current()
        self._pos += 1
        return tok

    def _peek(self, kind: str) -> bool:
        tok = self._current()
        return tok is not None and tok.kind == kind

    def _peek_keyword(self, value: str) -> bool:
        tok = self._current()
        return tok is not None and tok.kind == "KEYWORD" and tok.value == value

    def _expect(self, kind: str) -> str:
        tok = self._current()
        if tok is None:
            raise QasmParseError(f"Unexpected end of file, expected {kind}")
        if tok.kind != kind:
            raise QasmParseError(
                f"Expected {kind}, got {tok.kind} ('{tok.value}')", tok.line
            )
        self._advance()
        return tok.value

    def _expect_int(self) -> int:
        tok = self._current()
        value = self._expect("NUMBER")
        if not value.isdigit():
            raise QasmParseError(f"Expected integer, got '{value}'", tok.line)
        return int(value)

    def _skip_to_semicolon(self) -> None:
        while self._pos < len(self._tokens):
            if self._tokens[self._pos].kind == "SEMICOLON":
                self._pos += 1
                return
            self._pos += 1


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------

def parse_qasm(source: str) -> Circuit:
    """
    Parse OpenQASM 2.0 source into a Circuit.

    Example
    -------
    >>> from ketsim.qasm import parse_qasm
    >>> qc = parse_qasm('''
    ...     OPENQASM 2.0;
    ...     include "qelib1.inc";
    ...     qreg q[2];
    ...     h q[0];
    ...     cx q[0],q[1];
    ... ''')
    >>> print(qc)
    Circuit(n_qubits=2, depth=2, gates=2)
    """
    return QasmParser().parse(source)


def load_qasm(path: Union[str, Path]) -> Circuit:
    """Read and parse an OpenQASM file."""
    return parse_qasm(Path(path).read_text())
