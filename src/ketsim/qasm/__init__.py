"""OpenQASM 2.0 front end for ketsim."""

from ketsim.qasm.parser import SUPPORTED_GATES, QasmParseError, QasmParser, load_qasm, parse_qasm

__all__ = ["parse_qasm", "load_qasm", "QasmParser", "QasmParseError", "SUPPORTED_GATES"]
