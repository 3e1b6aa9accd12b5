# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import shlex
from pathlib import Path
from typing import Collection
from typing import Mapping

from hostprep._core import Command
from hostprep._shell import sh


def detect_distro_family(os_release: Path = Path('/etc/os-release')) -> str:
    """Tell the package manager family from os-release.

    >>> import tempfile
    >>> f = Path(tempfile.mkdtemp()) / 'os-release'
    >>> _ = f.write_text('NAME="Rocky Linux"\\nID="rocky"\\nID_LIKE="rhel centos fedora"\\n')
    >>> detect_distro_family(f)
    'rhel'
    >>> _ = f.write_text('ID=linuxmint\\nID_LIKE="ubuntu debian"\\n')
    >>> detect_distro_family(f)
    'debian'
    """
    values = _parse_os_release(os_release.read_text())
    candidates = [values.get('ID', ''), *values.get('ID_LIKE', '').split()]
    for distro_id in candidates:
        for family, ids in _families.items():
            if distro_id in ids:
                _logger.info("Distro %s: family %s", values.get('ID'), family)
                return family
    raise UnsupportedDistro(values.get('ID', '<unknown>'))


def _parse_os_release(text: str) -> Mapping[str, str]:
    values = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        key, eq, value = line.partition('=')
        if not eq:
            continue
        values[key] = ' '.join(shlex.split(value))
    return values


_families = {
    'debian': {'debian', 'ubuntu'},
    'rhel': {'rhel', 'centos', 'rocky', 'almalinux', 'fedora'},
    'arch': {'arch', 'manjaro'},
    }


class UnsupportedDistro(Exception):

    def __init__(self, distro_id):
        super().__init__(f"Unsupported distro: {distro_id}")


class InstallPackages(Command):
    """Install packages with the native package manager.

    Package names differ between distros, so they are given per family.
    A family with no packages given is not an error: nothing to install.
    """

    def __init__(
            self,
            debian: Collection[str] = (),
            rhel: Collection[str] = (),
            arch: Collection[str] = (),
            os_release: Path = Path('/etc/os-release'),
            ):
        self._packages = {'debian': debian, 'rhel': rhel, 'arch': arch}
        self._os_release = os_release

    def __repr__(self):
        given = {k: len(v) for k, v in self._packages.items() if v}
        return f'<{InstallPackages.__name__} {given}>'

    def run(self, output):
        family = detect_distro_family(self._os_release)
        packages = self._packages[family]
        if not packages:
            output.write(f"No packages for {family}")
            return
        sh(f'{_refresh[family]}\n{_install[family]} {shlex.join(packages)}', output)


class UpgradePackages(Command):

    def __init__(self, os_release: Path = Path('/etc/os-release')):
        self._os_release = os_release

    def __repr__(self):
        return f'{UpgradePackages.__name__}()'

    def run(self, output):
        family = detect_distro_family(self._os_release)
        sh(f'{_refresh[family]}\n{_upgrade[family]}', output)


_refresh = {
    'debian': 'apt-get update -y',
    'rhel': 'dnf makecache -y',
    'arch': 'pacman -Sy --noconfirm',
    }
_install = {
    'debian': 'apt-get install -y --no-install-recommends',
    'rhel': 'dnf install -y',
    'arch': 'pacman -S --needed --noconfirm',
    }
_upgrade = {
    'debian': 'apt-get -y upgrade',
    'rhel': 'dnf upgrade -y',
    'arch': 'pacman -Su --noconfirm',
    }

_logger = logging.getLogger(__name__)
