# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import fnmatch
import logging
import socket
from configparser import ConfigParser
from pathlib import Path
from typing import Mapping

_logger = logging.getLogger(__name__)


def read_config(*paths: Path, host: str = '') -> Mapping[str, str]:
    """Read and resolve overrides according to versions.

    Optionally add ";v123" to sections like "[build-*;v45]".
    If not specified, "v0" is assumed.
    Higher versions override lower versions.
    Within the same version, later files override earlier ones.

    >>> import tempfile
    >>> d = Path(tempfile.mkdtemp())
    >>> _ = (d / 'a.ini').write_text('[defaults]\\nuser_name = a\\n[web-*;v2]\\nuser_name = c\\n')
    >>> _ = (d / 'b.ini').write_text('[web-*]\\nuser_name = b\\n')
    >>> read_config(d / 'a.ini', d / 'b.ini', host='web-01')['user_name']
    'c'
    >>> read_config(d / 'a.ini', d / 'b.ini', host='db-01')['user_name']
    'a'
    """
    host = host or socket.gethostname()
    config_parts = []
    for path_i, path in enumerate(paths):
        config_parser = ConfigParser()
        config_parser.read(path)
        sections = config_parser.sections()
        for section_i, section in enumerate(sections):
            mask, version = _parse_section_header(section)
            if fnmatch.fnmatch(host, mask):
                _logger.info("Config %s: section %s: read", path, section)
                items = config_parser.items(section)
                config_parts.append((version, path_i, section_i, items))
            else:
                _logger.debug("Config %s: section %s: skip", path, section)
    config_parts.sort(key=lambda part: part[:3])
    config = {}
    for _version, _path_i, _section_i, items in config_parts:
        config.update(items)
    return config


def _parse_section_header(section):
    """Split section header into host mask and version.

    >>> _parse_section_header('defaults')
    ('*', 0)
    >>> _parse_section_header('web-*;v3')
    ('web-*', 3)
    """
    if section == 'defaults':
        return '*', 0
    else:
        mask, semicolon, extra = section.partition(';')
        if not extra:
            return mask, 0
        elif extra.startswith('v'):
            try:
                return mask, int(extra[1:])
            except ValueError:
                raise ValueError(f"Cannot parse {extra} in {section}")
        else:
            raise ValueError(f"Unknown {extra} in {section}")


global_config = read_config(
    Path(__file__).with_name('config.ini'),
    Path('/etc/hostprep.ini'),
    Path('~/.config/hostprep.ini').expanduser(),
    )

if __name__ == '__main__':
    for k, v in global_config.items():
        print(k + '=' + v)
