import logging
import os
import sys

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def setup_logging(level=None):
    """
    Configure the root logger once per process.
    Level precedence: explicit `level` arg, then env LOG_LEVEL, then INFO.
    """
    root = logging.getLogger()
    if getattr(root, '_portal_configured', False):
        return

    level_name = (level or os.getenv('LOG_LEVEL') or 'INFO').upper()
    resolved = logging.getLevelName(level_name)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root.addHandler(handler)
    root.setLevel(resolved)
    root._portal_configured = True
