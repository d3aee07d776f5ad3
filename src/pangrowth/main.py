"""Command line interface for pangrowth."""

import argparse
import shlex
import sys
from pathlib import Path
from typing import List, Optional

from pangrowth import __version__
from pangrowth.utils.config import (
    load_configuration, create_default_configuration, save_configuration
)
from pangrowth.core.exceptions import ConfigurationError, PipelineError


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the pangrowth CLI."""
    parser = argparse.ArgumentParser(
        prog='pangrowth',
        description='pangrowth: pangenome growth curves and Heaps\' law estimation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Growth of all countables with default thresholds
  pangrowth hist.tsv -o growth.tsv

  # Core and shell growth in one table
  pangrowth hist.tsv -o growth.tsv --coverage 1,1,1 --quorum 0,0.5,1

  # Generate config template
  pangrowth --init-config config.yaml
        """.strip()
    )

    parser.add_argument('hist_file', nargs='?', type=Path,
                        help='Coverage histogram as tab-separated file')

    special_group = parser.add_argument_group('Special modes')
    special_group.add_argument('--init-config', type=Path, metavar='FILE',
                               help='Create default configuration file and exit')

    core_group = parser.add_argument_group('Core options')
    core_group.add_argument('--config', '-c', type=Path,
                            help='Configuration file (YAML or JSON)')
    core_group.add_argument('--output', '-o', type=Path, default=Path('growth.tsv'),
                            help='Output growth table (default: %(default)s)')
    core_group.add_argument('--verbose', '-v', action='store_true',
                            help='Enable verbose logging')
    core_group.add_argument(
        '--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging verbosity level (default: from config, INFO)')

    growth_group = parser.add_argument_group('Growth parameters')
    growth_group.add_argument(
        '--coverage', '-l', type=str, metavar='LIST',
        help='Comma-separated coverage thresholds; integers are path counts, '
             'decimals are fractions of paths (default: 1)')
    growth_group.add_argument(
        '--quorum', '-q', type=str, metavar='LIST',
        help='Comma-separated quorum fractions of the sampled paths (default: 0)')
    growth_group.add_argument('--add-hist', action='store_true',
                              help='Also include the histogram in the output')
    growth_group.add_argument('--no-alpha', action='store_true',
                              help='Do not estimate Heaps\' law')

    resource_group = parser.add_argument_group('Resource parameters')
    resource_group.add_argument('--threads', '-t', type=int, metavar='INT',
                                help='Number of threads to use (default: all CPUs)')

    parser.add_argument('--version', action='version', version=f'pangrowth {__version__}')

    return parser


def cli(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        if args.init_config:
            _handle_init_config(args.init_config)
            return

        if not args.hist_file:
            print("Error: HIST_FILE is required", file=sys.stderr)
            print("Use --help to see all available options", file=sys.stderr)
            sys.exit(1)

        if not args.hist_file.exists():
            print(f"Error: Hist file does not exist: {args.hist_file}", file=sys.stderr)
            sys.exit(1)

        if args.config:
            if not args.config.exists():
                print(f"Error: Configuration file does not exist: {args.config}", file=sys.stderr)
                sys.exit(1)
            config = load_configuration(args.config)
            if args.verbose:
                print(f"Loaded configuration from {args.config}")
        else:
            config = create_default_configuration()

        _apply_cli_overrides(config, {
            'coverage': args.coverage,
            'quorum': args.quorum,
            'add_hist': args.add_hist,
            'no_alpha': args.no_alpha,
            'threads': args.threads,
            'log_level': args.log_level
        })

        from pangrowth.pipeline import run_growth_analysis

        log_level = config.get('logging', {}).get('level', 'INFO')
        if args.verbose and not args.log_level:
            log_level = 'DEBUG'

        results = run_growth_analysis(
            hist_file=args.hist_file,
            output_file=args.output,
            config=config,
            log_level=log_level.upper(),
            command=shlex.join(["pangrowth"] + (sys.argv[1:] if argv is None else list(argv)))
        )

        print(f"Growth table written to {results['output_file']}")
        for count_type, alpha in results.get('alpha', {}).items():
            print(f"  alpha ({count_type}): {alpha:.4f}")

    except (ConfigurationError, PipelineError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


def _handle_init_config(output_path: Path) -> None:
    """Handle --init-config mode."""
    try:
        config = create_default_configuration()
        save_configuration(config, output_path)
        print(f"Created default configuration: {output_path}")
    except Exception as e:
        print(f"Error creating configuration: {e}", file=sys.stderr)
        sys.exit(1)


def _apply_cli_overrides(config: dict, cli_params: dict) -> None:
    """Apply CLI parameter overrides to configuration."""
    growth = config.setdefault('growth', {})
    if cli_params['coverage'] is not None:
        growth['coverage'] = cli_params['coverage']
    if cli_params['quorum'] is not None:
        growth['quorum'] = cli_params['quorum']
    if cli_params['add_hist']:
        growth['add_hist'] = True
    if cli_params['no_alpha']:
        growth['add_alpha'] = False

    if cli_params['threads'] is not None:
        config.setdefault('resources', {})['threads'] = cli_params['threads']
    if cli_params['log_level'] is not None:
        config.setdefault('logging', {})['level'] = cli_params['log_level']


if __name__ == '__main__':
    cli()
