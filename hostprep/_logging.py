# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import logging.handlers
from pathlib import Path

from hostprep._config import global_config


def init_logging(name: str) -> Path:
    """Log everything to a rotating file, warnings also to the terminal.

    The file is for diagnosing hostprep itself. What steps print
    goes to the provisioning log, not here.
    """
    logging.getLogger().setLevel(logging.DEBUG)
    log_file = _init_file_logging(name + '.log')
    _init_stream_logging()
    _logger.debug("Diagnostics: %s", log_file)
    return log_file


def _init_file_logging(log_file_name: str) -> Path:
    log_dir = Path(global_config['diagnostics_log_dir']).expanduser()
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / log_file_name
    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=10 * 1024**2, backupCount=3)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(process)d %(name)s %(levelname)s %(message)s'))
    file_handler.setLevel(logging.DEBUG)
    logging.getLogger().addHandler(file_handler)
    return log_file


def _init_stream_logging():
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.WARNING)
    stream_handler.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
    logging.getLogger().addHandler(stream_handler)


_logger = logging.getLogger(__name__)
