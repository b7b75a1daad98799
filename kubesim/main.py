#!/usr/bin/env python3

"""
kubesim - Main Entry Point
"""

import sys
import logging
import argparse

from . import __version__
from .config import load_settings
from .core.fixture import load_fixture_file
from .core.state import StateStore
from .exceptions import FixtureError
from .shell.engine import SimulatorEngine
from .shell.shell import KubeSimShell, run_command

logger = logging.getLogger('kubesim')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='kubesim', description='docker and kubectl terminal simulator')
    parser.add_argument('-c', '--command', help='execute one command and exit')
    parser.add_argument('--config', help='settings file (YAML); defaults to $KUBESIM_CONFIG')
    parser.add_argument('--fixture', metavar='FILE', help='starting cluster state for the lab (YAML)')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='logging level (default: WARNING)')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser.parse_args(argv)


def main(argv=None):
    """Start the simulator shell, or run a single command with -c"""
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    settings = load_settings(args.config)
    engine = SimulatorEngine(StateStore(settings))
    if args.fixture:
        try:
            engine.init_lab_state(load_fixture_file(args.fixture))
        except FixtureError as e:
            print(f"kubesim: {e.message}", file=sys.stderr)
            return 1
    logger.info("Simulator initialized")

    if args.command:
        run_command(engine, args.command)
        return 0

    try:
        KubeSimShell(engine).cmdloop()
    except KeyboardInterrupt:
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
