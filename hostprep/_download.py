# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import fnmatch
import io
import logging
import os
import tarfile
import zipfile
from pathlib import Path
from typing import Optional

import requests

from hostprep._core import Command
from hostprep._output import StepOutput


def fetch(url: str, output: StepOutput) -> bytes:
    timeout = _request_timeout(output)
    _logger.info("GET %s", url)
    output.write(f"GET {url}")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise DownloadFailed(url, e)
    return response.content


def fetch_json(url: str, output: StepOutput):
    timeout = _request_timeout(output)
    _logger.info("GET %s", url)
    output.write(f"GET {url}")
    try:
        response = requests.get(url, headers={'Accept': 'application/json'}, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as e:
        raise DownloadFailed(url, e)


def _request_timeout(output: StepOutput) -> float:
    left = output.timeout()
    if left is None:
        return _max_request_timeout_sec
    return min(left, _max_request_timeout_sec)


_max_request_timeout_sec = 600


class DownloadFailed(Exception):

    def __init__(self, url, cause):
        super().__init__(f"Cannot download {url}: {cause}")


def install_executable(data: bytes, target: Path, mode: int = 0o755):
    """Replace the target at once; a half-written binary is never visible."""
    target.parent.mkdir(parents=True, exist_ok=True)
    temp = target.with_name('.' + target.name + '.download')
    temp.write_bytes(data)
    temp.chmod(mode)
    os.replace(temp, target)
    _logger.info("Installed %s (%d bytes)", target, len(data))


class DownloadBinary(Command):
    """Download a single executable unless it is already in place.

    If version_url is given, the version is fetched from it
    and substituted for {version} in the URL.
    """

    def __init__(self, url: str, target: str, version_url: Optional[str] = None, mode: int = 0o755):
        self._url = url
        self._target = Path(target)
        self._version_url = version_url
        self._mode = mode

    def __repr__(self):
        return f'{DownloadBinary.__name__}({self._url!r}, {str(self._target)!r})'

    def run(self, output):
        if self._target.exists():
            output.write(f"{self._target}: already installed")
            return
        url = self._url
        if self._version_url is not None:
            version = fetch(self._version_url, output).decode().strip()
            output.write(f"Version {version}")
            url = url.format(version=version)
        install_executable(fetch(url, output), self._target, self._mode)
        output.write(f"{self._target}: installed from {url}")


class InstallGithubRelease(Command):
    """Install a binary from the latest GitHub release of a project.

    The asset is chosen by a glob pattern. Archives are unpacked
    and the member with the binary name is installed.
    """

    def __init__(self, repo: str, asset_pattern: str, target: str, member: Optional[str] = None):
        self._repo = repo
        self._asset_pattern = asset_pattern
        self._target = Path(target)
        self._member = member or self._target.name

    def __repr__(self):
        return f'{InstallGithubRelease.__name__}({self._repo!r}, {self._asset_pattern!r}, {str(self._target)!r})'

    def run(self, output):
        if self._target.exists():
            output.write(f"{self._target}: already installed")
            return
        release = fetch_json(f'https://api.github.com/repos/{self._repo}/releases/latest', output)
        output.write(f"{self._repo}: latest release {release.get('tag_name')}")
        for asset in release.get('assets', []):
            if fnmatch.fnmatch(asset['name'], self._asset_pattern):
                break
        else:
            raise AssetNotFound(self._repo, self._asset_pattern)
        data = fetch(asset['browser_download_url'], output)
        install_executable(extract_member(asset['name'], data, self._member), self._target)
        output.write(f"{self._target}: installed from {asset['name']}")


def extract_member(name: str, data: bytes, member: str) -> bytes:
    """Get the file named member from an archive; a plain file is returned as is."""
    if name.endswith(('.tar.gz', '.tgz', '.tar.xz', '.tar')):
        with tarfile.open(fileobj=io.BytesIO(data)) as tar:
            for info in tar.getmembers():
                if info.isfile() and Path(info.name).name == member:
                    return tar.extractfile(info).read()
    elif name.endswith('.zip'):
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            for info in archive.infolist():
                if not info.is_dir() and Path(info.filename).name == member:
                    return archive.read(info)
    else:
        return data
    raise MemberNotFound(name, member)


class AssetNotFound(Exception):

    def __init__(self, repo, pattern):
        super().__init__(f"No asset matching {pattern!r} in the latest release of {repo}")


class MemberNotFound(Exception):

    def __init__(self, archive, member):
        super().__init__(f"No {member!r} in {archive}")


_logger = logging.getLogger(__name__)
