import logging
import sys

from medscrape.config import settings


def get_logger(name):
    log = logging.getLogger(name)
    if not log.handlers:
        h = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        h.setFormatter(fmt)
        log.addHandler(h)
        log.setLevel(settings.log_level.upper())
    return log
