"""
Command-line interface for ketsim.

Usage:
    ketsim run program.qasm
    ketsim run program.qasm --probabilities --log-level INFO
    ketsim info
"""
import argparse
import logging
import sys

logger = logging.getLogger(__name__)


def cmd_run(args):
    """Simulate an OpenQASM program and print its final state."""
    from ..qasm import parse_qasm

    if args.file == '-':
        source = sys.stdin.read()
    else:
        with open(args.file, encoding='utf-8') as fh:
            source = fh.read()

    circuit = parse_qasm(source)
    logger.info("Parsed %s: %r", args.file, circuit)
    state = circuit.run(atol=args.atol)

    print(state)

    if args.probabilities:
        print()
        for label, prob in state.probabilities().items():
            bar = '█' * int(prob * 40)
            print(f"  |{label}⟩: {prob:7.4f} {bar}")
    return 0


def cmd_info(args):
    """Show ketsim information."""
    from .. import __version__
    from ..qasm import SUPPORTED_GATES
    from ..state import ATOL

    print(f"""
ketsim v{__version__}
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

Sparse basis-ket quantum circuit simulator.

Gates:     {', '.join(SUPPORTED_GATES)}, custom 'gate' definitions
Tolerance: {ATOL:g} (amplitudes at or below are dropped)

Usage:
  ketsim run program.qasm
  ketsim run program.qasm --probabilities
  cat program.qasm | ketsim run -
""")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    from ..errors import KetsimError
    from ..state import ATOL

    parser = argparse.ArgumentParser(
        prog='ketsim',
        description='Sparse quantum circuit simulator'
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging verbosity (default: WARNING)')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Run command
    run_parser = subparsers.add_parser('run', parents=[common],
                                       help='Run an OpenQASM program')
    run_parser.add_argument('file', help='QASM file, or "-" for stdin')
    run_parser.add_argument('--atol', type=float, default=ATOL,
                            help=f'Cancellation tolerance (default: {ATOL:g})')
    run_parser.add_argument('--probabilities', action='store_true',
                            help='Also print the probability of each basis state')
    run_parser.set_defaults(func=cmd_run)

    # Info command
    info_parser = subparsers.add_parser('info', parents=[common],
                                        help='Show ketsim info')
    info_parser.set_defaults(func=cmd_info)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, getattr(args, 'log_level', 'WARNING')),
        format='%(levelname)s %(name)s: %(message)s',
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except (KetsimError, OSError, UnicodeDecodeError) as exc:
        print(f"ketsim: error: {exc}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
