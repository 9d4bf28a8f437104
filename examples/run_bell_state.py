"""Example: Bell and GHZ states on the sparse simulator."""
from pathlib import Path

from ketsim import Circuit, load_qasm

print("=" * 50)
print("ketsim: Bell State Example")
print("=" * 50)

state = Circuit(2).h(0).cx(0, 1).run()
print(f"\nFinal state: {state}")
for label, prob in state.probabilities().items():
    print(f"  |{label}⟩: {100 * prob:5.1f}%")

print("\nExpected: 50% |00⟩ and 50% |11⟩ (entangled!)")

# A 30-qubit GHZ state keeps only two kets
ghz = load_qasm(Path(__file__).with_name("ghz.qasm")).run()
print(f"\nGHZ on {ghz.num_qubits} qubits: {len(ghz)} stored kets")
