"""
Colorized output routing for running cleanup steps.
"""

import logging
from collections.abc import Mapping

from rich.markup import escape

from reclaimer.catalog import LOG_PREFIX_COLOR_THEME

DEFAULT_COLOR = "white"

logger = logging.getLogger(__name__)


class ExecutionReporter:
    """Logs captured subprocess lines prefixed with their step name."""

    def __init__(self, theme: Mapping[str, str] = LOG_PREFIX_COLOR_THEME, log: logging.Logger | None = None):
        self.theme = theme
        self.log = log or logger

    def color_for(self, label: str) -> str:
        return self.theme.get(label, DEFAULT_COLOR)

    def format_line(self, label: str, line: str, color: str | None = None) -> str:
        color = color or self.color_for(label)
        return f"[{color}]{escape(label)}[/{color}]: {escape(line)}"

    def emit(self, label: str, line: str, color: str | None = None) -> None:
        """
        Log one output line at INFO.

        Markup is enabled for this record only, so a RichHandler renders the
        prefix in color while plain handlers print the tags verbatim.
        """
        self.log.info(self.format_line(label, line, color), extra={"markup": True})
