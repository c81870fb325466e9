"""Console logging for scripts."""

import logging
import os

import coloredlogs


def setup_console_logging(default_log_level="warning", simplified_logging=False) -> logging.Logger:
    """Set up coloured log output.

    - Log level is read from ``LOG_LEVEL`` environment variable
    - Tune down noisy dependency library logging

    :return:
        Root logger
    """
    level = os.environ.get("LOG_LEVEL", default_log_level).upper()
    numeric_level = getattr(logging, level, None)
    assert numeric_level, f"No level: {level}"

    if simplified_logging:
        fmt = "%(message)s"
    else:
        fmt = "%(asctime)s %(name)-30s %(message)s"

    coloredlogs.install(level=numeric_level, fmt=fmt, date_fmt="%H:%M:%S")

    # Mute noise
    logging.getLogger("web3.providers.HTTPProvider").setLevel(logging.WARNING)
    logging.getLogger("web3.RequestManager").setLevel(logging.WARNING)
    logging.getLogger("web3.manager.RequestManager").setLevel(logging.WARNING)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)

    return logging.getLogger()
