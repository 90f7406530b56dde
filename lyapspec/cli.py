"""
lyapspec Command Line Interface

Usage:
    lyapspec <command> [args]
    python -m lyapspec <command> [args]

Commands:
    run         Estimate the Lyapunov spectrum of one series
    sweep       Estimate spectra over a parameter grid
    presets     List available estimator presets

Examples:
    lyapspec run henon.parquet --column x -m 2 --min-neighbors 20
    lyapspec run data.csv --preset logistic -o spectrum.parquet
    lyapspec sweep henon.parquet --dims 1 2 3 --neighbors 10 20 --workers 4 -o sweep.parquet

Output safety (as for every entry point):
    1. Input file must exist
    2. Output can't overwrite the input
    3. Existing outputs need -y/--yes or confirmation
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from lyapspec.config import get_preset, list_available_presets
from lyapspec.errors import LyapunovError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


# ============================================================
# PATH SAFETY
# ============================================================

def _error(message: str):
    """Print error and exit."""
    print(f"\nERROR: {message}", file=sys.stderr)
    sys.exit(1)


def _confirm_overwrite(path: str):
    """Ask user to confirm overwrite."""
    print(f"\nWARNING: Output file '{path}' already exists.")
    try:
        response = input("   Overwrite? [y/N]: ")
        if response.lower() != 'y':
            print("   Aborted.")
            sys.exit(0)
    except EOFError:
        _error(
            f"Output file '{path}' exists and running non-interactively.\n"
            f"       Use -y/--yes to overwrite, or choose a different output path."
        )


def check_paths(input_path: str, output_path: Optional[str], yes: bool = False):
    """Validate input exists and output neither clobbers it nor an unconfirmed file."""
    if not Path(input_path).exists():
        _error(f"Input file not found: {input_path}")

    if not output_path:
        return

    if Path(output_path).resolve() == Path(input_path).resolve():
        _error(
            f"Output '{output_path}' matches the input file!\n"
            f"       This would destroy your input data."
        )

    if Path(output_path).exists() and not yes:
        _confirm_overwrite(output_path)


def configure_logging(verbose: bool = False, quiet: bool = False):
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


# ============================================================
# COMMANDS
# ============================================================

def _config_from_args(args):
    config = get_preset(args.preset)
    return config.replace(
        embedding_dim=args.embedding_dim,
        iterations=args.iterations,
        eps_min=args.eps_min,
        eps_step=args.eps_step,
        min_neighbors=args.min_neighbors,
        inverse=args.inverse,
        neighbor_index=args.index,
    )


def cmd_run(args):
    """Estimate one spectrum."""
    from lyapspec.io import read_series, spectrum_frame, write_parquet_atomic

    check_paths(args.input, args.output, args.yes)

    try:
        config = _config_from_args(args)
        series = read_series(args.input, column=args.column)
        method = config.build(series)
        print(method.describe())
        print()
        result = method.calculate()
    except (LyapunovError, ValueError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Lyapunov spectrum: {result}")
    print(f"Kaplan-Yorke dimension: {result.kaplan_yorke_dimension:.4g}")
    print(f"Avg. relative forecast error: {result.relative_forecast_error:.4g}")
    print(f"Avg. number of neighbors: {result.average_neighbors:.4g}")

    if args.output:
        frame = spectrum_frame(
            result,
            source=str(args.input),
            column=args.column,
            **config.estimator_kwargs(),
        )
        rows = write_parquet_atomic(frame, args.output)
        print(f"Wrote {rows} row(s) to {args.output}")

    return 0


def cmd_sweep(args):
    """Estimate spectra over a parameter grid."""
    from lyapspec.io import read_series, write_parquet_atomic
    from lyapspec.sweep import build_grid, run_sweep

    check_paths(args.input, args.output, args.yes)

    try:
        base = get_preset(args.preset)
        series = read_series(args.input, column=args.column)
        grid = build_grid(
            dims=args.dims,
            min_neighbors=args.neighbors or [base.min_neighbors],
            eps_steps=args.eps_steps or [base.eps_step],
            eps_mins=args.eps_mins or [base.eps_min],
            base=base,
        )
    except (LyapunovError, ValueError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    table = run_sweep(series, grid, workers=args.workers)

    with_exponents = table.select(
        'item_id', 'embedding_dim', 'min_neighbors', 'eps_step', 'eps_min',
        'status', 'lambda_max', 'kaplan_yorke_dimension',
    )
    print(with_exponents)

    if args.output:
        rows = write_parquet_atomic(table, args.output)
        print(f"Wrote {rows} row(s) to {args.output}")

    failed = table.filter(table['status'] == 'error').height
    return 0 if failed < table.height else 1


def cmd_presets(args):
    """List estimator presets."""
    print("Available presets:")
    for name in list_available_presets():
        try:
            config = get_preset(name)
            print(f"  {name}: m={config.embedding_dim}, k={config.min_neighbors}, "
                  f"index={config.neighbor_index}  {config.description}")
        except Exception as e:
            print(f"  {name}: [ERROR] {e}")
    return 0


# ============================================================
# MAIN
# ============================================================

def _add_common(parser: argparse.ArgumentParser):
    parser.add_argument('input', help='[INPUT] Parquet or CSV file')
    parser.add_argument('--column', '-c', default=None,
                        help='Column holding the series (default: first numeric)')
    parser.add_argument('--preset', default='default',
                        help='Estimator preset (default: default)')
    parser.add_argument('--output', '-o', default=None, metavar='FILE',
                        help='[OUTPUT] Parquet file for results')
    parser.add_argument('-y', '--yes', action='store_true',
                        help='Skip confirmation prompts (for automated scripts)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug output')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='lyapspec',
        description='Lyapunov spectrum estimation from time series (local Jacobian method)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    lyapspec run henon.parquet --column x -m 2
    lyapspec sweep henon.parquet --dims 1 2 3 --workers 4 -o sweep.parquet
    lyapspec presets
        """,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # run command
    run_parser = subparsers.add_parser('run', help='Estimate the Lyapunov spectrum of one series')
    _add_common(run_parser)
    run_parser.add_argument('--embedding-dim', '-m', type=int, default=None,
                            help='Embedding dimension')
    run_parser.add_argument('--iterations', '-n', type=int, default=None,
                            help='Last time index to use (default: whole series)')
    run_parser.add_argument('--eps-min', type=float, default=None,
                            help='Minimum neighbourhood radius in data units (0 = adaptive)')
    run_parser.add_argument('--eps-step', type=float, default=None,
                            help='Radius growth factor (> 1)')
    run_parser.add_argument('--min-neighbors', '-k', type=int, default=None,
                            help='Neighbours per local fit')
    run_parser.add_argument('--inverse', action=argparse.BooleanOptionalAction, default=None,
                            help='Analyse the time-reversed series (default: from preset)')
    run_parser.add_argument('--index', choices=['box', 'kdtree'], default=None,
                            help='Neighbour search structure')

    # sweep command
    sweep_parser = subparsers.add_parser('sweep', help='Estimate spectra over a parameter grid')
    _add_common(sweep_parser)
    sweep_parser.add_argument('--dims', type=int, nargs='+', required=True,
                              help='Embedding dimensions')
    sweep_parser.add_argument('--neighbors', type=int, nargs='+', default=None,
                              help='Minimum neighbour counts')
    sweep_parser.add_argument('--eps-steps', type=float, nargs='+', default=None,
                              help='Radius growth factors')
    sweep_parser.add_argument('--eps-mins', type=float, nargs='+', default=None,
                              help='Minimum radii in data units')
    sweep_parser.add_argument('--workers', type=int, default=1,
                              help='Number of parallel workers')

    # presets command
    subparsers.add_parser('presets', help='List available estimator presets')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """lyapspec CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(
        verbose=getattr(args, 'verbose', False),
        quiet=getattr(args, 'quiet', False),
    )

    handlers = {
        'run': cmd_run,
        'sweep': cmd_sweep,
        'presets': cmd_presets,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
