# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Show the summary of the latest provisioning at login.

The summary is rebuilt from the log alone, so it needs nothing
from the run that wrote it and can be shown any number of times.
"""
import argparse
import logging
import shlex
import sys
from pathlib import Path
from typing import Sequence

from hostprep._config import global_config
from hostprep._log_stream import read_events
from hostprep._status import replay


def render_banner(log_path: Path) -> str:
    try:
        events = read_events(log_path)
    except FileNotFoundError:
        return f"No provisioning log at {log_path}"
    report = replay(events, log_path)
    return '\n'.join([
        '',
        report.render(),
        f"See detailed logs: {log_path}",
        '',
        ])


def install_login_banner(script_path: Path, log_path: Path):
    """Make the interactive login shell print the summary.

    The script calls back into this module with the interpreter in use now.
    """
    command = shlex.join([sys.executable, '-m', 'hostprep.login_banner', '--log', str(log_path)])
    script_path.parent.mkdir(parents=True, exist_ok=True)
    script_path.write_text(
        '# Generated by hostprep. Shows the latest provisioning summary.\n'
        f'{command} 2>/dev/null || true\n')
    script_path.chmod(0o755)
    _logger.info("Login banner installed: %s", script_path)


def main(args: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(description="print the latest provisioning summary")
    parser.add_argument(
        '--log',
        type=Path,
        default=Path(global_config['log_path']),
        help="provisioning log; default: %(default)s")
    parsed_args = parser.parse_args(args)
    print(render_banner(parsed_args.log))
    return 0


_logger = logging.getLogger(__name__)

if __name__ == '__main__':
    exit(main(sys.argv[1:]))
