import re
import subprocess

from loguru import logger

# External binaries and the package that provides them
REQUIRED_TOOLS = {
    'prefetch': 'SRA Toolkit',
    'fasterq-dump': 'SRA Toolkit',
}


class SraReadsError(Exception):
    """Input or environment problem that stops the whole batch"""


def check_dependencies(tools=None):
    """Check if required tools are installed"""
    tools = REQUIRED_TOOLS if tools is None else tools
    missing = []

    for tool in tools:
        try:
            subprocess.run([tool, '--version'],
                           capture_output=True,
                           check=True)
        except (subprocess.CalledProcessError, FileNotFoundError):
            # Older SRA Toolkit builds only know -V
            try:
                subprocess.run([tool, '-V'],
                               capture_output=True,
                               check=True)
            except (subprocess.CalledProcessError, FileNotFoundError):
                missing.append(tool)

    for tool in missing:
        logger.error(f"Missing requirement: {tool} ({tools[tool]})")
    return not missing


def sanitize_name(name):
    """Keep only ASCII letters and digits, for use as a directory name"""
    return re.sub(r'[^A-Za-z0-9]', '', name)


def chunked(items, size):
    """Yield contiguous slices of ``items`` holding at most ``size`` elements"""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    items = list(items)
    for start in range(0, len(items), size):
        yield items[start:start + size]
