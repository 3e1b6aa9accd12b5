# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Verify a provisioned host. Changes nothing.

Run it after the first boot, e.g. from a VM image pipeline.
The exit status is the number of failed checks.
"""
from typing import Mapping
from typing import Sequence

from hostprep._checks import CommandAvailable
from hostprep._checks import FileContains
from hostprep._checks import ServiceActive
from hostprep._step import Step


def steps(config: Mapping[str, str]) -> Sequence[Step]:
    del config  # Checks are the same for every host.
    return [
        # Base utilities
        *[Step(name, CommandAvailable(command)) for name, command in [
            ('git', 'git'),
            ('vim', 'vim'),
            ('jq', 'jq'),
            ('tree', 'tree'),
            ('htop', 'htop'),
            ('tmux', 'tmux'),
            ('ripgrep', 'rg'),
            ('fzf', 'fzf'),
            ('nmap', 'nmap'),
            ('tcpdump', 'tcpdump'),
            ('ping', 'ping'),
            ]],
        # Networking and security
        Step('ufw', CommandAvailable('ufw')),
        Step('ufw_service', ServiceActive('ufw')),
        Step('fail2ban', CommandAvailable('fail2ban-server')),
        Step('fail2ban_service', ServiceActive('fail2ban')),
        # Languages and runtimes
        Step('python3', CommandAvailable('python3')),
        Step('pip3', CommandAvailable('pip3')),
        Step('java', CommandAvailable('java')),
        Step('nodejs', CommandAvailable('node')),
        Step('npm', CommandAvailable('npm')),
        # Containers and DevOps
        Step('docker', CommandAvailable('docker')),
        Step('docker_service', ServiceActive('docker')),
        Step('docker_compose', CommandAvailable('docker-compose')),
        Step('terraform', CommandAvailable('terraform')),
        Step('ansible', CommandAvailable('ansible')),
        # Either the user or the system-wide file will do.
        Step('vim_config', FileContains(
            ['~/.vimrc', '/etc/vim/vimrc.local'],
            ['syntax on', 'set number'],
            )),
        ]
