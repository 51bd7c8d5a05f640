"""Available disk space measurement."""

import logging
import re

from reclaimer.commands import CommandRunner
from reclaimer.exceptions import ParseError

logger = logging.getLogger(__name__)

# df reports in 1K blocks
BLOCKS_PER_GIGABYTE = 1024 * 1024

_INTEGER = re.compile(r"[+-]?\d+")


def parse_available_space(output: str) -> int:
    """
    Parse the single "avail" field printed by df.

    Raises:
        ParseError: If the output is not exactly one integer.
    """
    value = output.strip()
    if not _INTEGER.fullmatch(value):
        raise ParseError(output)
    return int(value)


def blocks_to_gigabytes(blocks: int) -> float:
    return blocks / BLOCKS_PER_GIGABYTE


async def measure_available_space(mount_point: str = "/") -> int:
    """
    Query the available space on a mount point.

    Every call runs df again; nothing is cached. The query is never elevated
    or streamed, and it runs even in dry-run mode.

    Args:
        mount_point: Filesystem to measure.

    Returns:
        int: Available space in 1K blocks.

    Raises:
        CommandError: If df exits non-zero.
        ParseError: If df prints anything but one integer below its header.
    """
    runner = CommandRunner(verbose=False, use_sudo=False)
    result = await runner.run(("df", "--output=avail", mount_point), label="df", privileged=False)
    # First line is the "Avail" header
    available = parse_available_space("\n".join(result.stdout[1:]))
    logger.debug(f"Available space on {mount_point}: {available} blocks")
    return available
