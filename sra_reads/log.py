import sys

from loguru import logger

LOG_FORMAT = "<level>[{time:YYYY-MM-DD HH:mm:ss}] [{level}]</level> {message}"


def setup_logging(verbose=False, colorize=None):
    """Send INFO/WARNING lines to stdout and ERROR lines to stderr"""
    logger.remove()
    logger.level('INFO', color='<green><bold>')
    logger.level('WARNING', color='<yellow><bold>')
    logger.level('ERROR', color='<red><bold>')

    level = 'DEBUG' if verbose else 'INFO'
    logger.add(
        sys.stdout,
        level=level,
        format=LOG_FORMAT,
        colorize=colorize,
        filter=lambda record: record['level'].no < logger.level('ERROR').no,
    )
    logger.add(sys.stderr, level='ERROR', format=LOG_FORMAT, colorize=colorize)
