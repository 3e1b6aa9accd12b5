# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from hostprep._config import global_config
from hostprep._coordinator import RunCoordinator
from hostprep._coordinator import exit_status
from hostprep._log_stream import LogStream
from hostprep._logging import init_logging
from hostprep.login_banner import install_login_banner
from hostprep.login_banner import render_banner
from hostprep.workflows import WORKFLOWS


def main(args: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog='hostprep', description="provision this host step by step")
    command_parser = parser.add_subparsers(dest='command', required=True)
    run_parser = command_parser.add_parser('run', help="run a workflow and print its summary")
    run_parser.add_argument('workflow', choices=sorted(WORKFLOWS))
    run_parser.add_argument(
        '--log', type=Path,
        help="append to this log instead of the one from the config")
    run_parser.add_argument(
        '--step', action='append', dest='steps', metavar='NAME',
        help="run only the named step; repeat for more; order of the workflow is kept")
    run_parser.add_argument(
        '--timeout', type=float, default=float(global_config['step_timeout_sec']),
        help="limit for a single step, seconds, 0 for none; default: %(default)s")
    run_parser.add_argument(
        '--no-banner', action='store_true',
        help="do not install the summary shown at login")
    summary_parser = command_parser.add_parser('summary', help="print the summary of the latest run from the log")
    summary_parser.add_argument('--log', type=Path, default=Path(global_config['log_path']))
    command_parser.add_parser('list', help="list workflows and their steps")
    parsed_args = parser.parse_args(args)
    if parsed_args.command == 'list':
        return _list()
    elif parsed_args.command == 'summary':
        print(render_banner(parsed_args.log))
        return 0
    workflow = WORKFLOWS[parsed_args.workflow]
    if workflow.changes_host and os.geteuid() != 0:
        # Same as "exec sudo -E bash $0": the run itself always has privileges.
        os.execvp('sudo', ['sudo', '-E', sys.executable, '-m', 'hostprep', *args])
    steps = workflow.steps(global_config)
    if parsed_args.steps:
        unknown = set(parsed_args.steps) - {step.name for step in steps}
        if unknown:
            parser.error(f"Unknown steps for {workflow.name}: {', '.join(sorted(unknown))}")
        steps = [step for step in steps if step.name in parsed_args.steps]
    log_path = parsed_args.log or Path(global_config[workflow.log_path_key])
    init_logging('hostprep')
    with LogStream(log_path) as log:
        coordinator = RunCoordinator(log, step_timeout_sec=parsed_args.timeout or None)
        coordinator.extend(steps)
        report = coordinator.run()
        log.append(f"{workflow.name} completed, {report.failure_count()} failed")
    coordinator.print_report(report)
    if workflow.changes_host and not parsed_args.no_banner:
        install_login_banner(Path(global_config['summary_script_path']), log_path)
    return exit_status(report)


def _list() -> int:
    for workflow in WORKFLOWS.values():
        print(f"{workflow.name}: {workflow.description}")
        for step in workflow.steps(global_config):
            print(f"    {step.name}")
    return 0


_logger = logging.getLogger(__name__)

if __name__ == '__main__':
    exit(main(sys.argv[1:]))
