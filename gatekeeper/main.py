#!/usr/bin/env python3
"""
Gatekeeper Entry Point

Fetch the active VPN sessions from the ASA and publish them downstream.
Meant to be started periodically (cron, systemd timer); overlapping runs
are skipped by the execution guard.

Usage:
    gatekeeper --conf /etc/gatekeeper.conf.yml
    gatekeeper --conf ./gatekeeper.conf.yml --log-config config/logging.yaml --verbose

Exit codes:
    0  sessions published, or run skipped because another run holds the lock
    1  device unreachable, rejected a command, or returned a malformed report
    2  lock integrity violated
    3  downstream publish failed
    4  configuration invalid
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from gatekeeper import __version__
from gatekeeper.exceptions import ConfigurationError
from gatekeeper.logging import configure_logging, tty_default_level
from gatekeeper.orchestrator import RunOrchestrator, RunOutcome
from gatekeeper.utils.config_loader import DEFAULT_CONFIG_FILE, load_config


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog='gatekeeper',
        description='Publish active ASA VPN sessions',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--conf',
        dest='config_file',
        default=DEFAULT_CONFIG_FILE,
        help=f'Config file (default: {DEFAULT_CONFIG_FILE})'
    )
    parser.add_argument(
        '--log-config',
        help='YAML logging configuration (dictConfig)'
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Log at DEBUG level (also overrides the gatekeeper logger level of --log-config)'
    )
    verbosity.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Log errors only (also overrides the gatekeeper logger level of --log-config)'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser.parse_args(argv)


def _exit_on_signal(signum, frame):
    raise SystemExit(128 + signum)


def install_signal_handlers():
    """Turn SIGTERM and SIGINT into SystemExit so the execution guard is released"""
    signal.signal(signal.SIGINT, _exit_on_signal)
    signal.signal(signal.SIGTERM, _exit_on_signal)


def main(argv: Optional[List[str]] = None) -> int:
    """Run once and return the process exit code"""
    args = parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = tty_default_level()

    logger = logging.getLogger('gatekeeper')
    if configure_logging(args.log_config, default_level=level) and (args.verbose or args.quiet):
        logger.setLevel(level)

    try:
        config = load_config(args.config_file)
    except ConfigurationError as e:
        logger.critical(f"Invalid configuration ({args.config_file}): {e}")
        return RunOutcome.CONFIG_ERROR.exit_code

    install_signal_handlers()
    outcome = RunOrchestrator(config).run()
    logger.debug(f"Run finished: {outcome.value}")
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
