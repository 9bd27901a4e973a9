"""Logging and console setup for the CLI.

In debug mode every log record and every line printed to the Rich console
is appended to a debug log file, so a failing export can be diagnosed from
a single file.
"""

import io
import logging
import os
import re
from typing import Optional
from rich.console import Console as RichConsole

_ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class DebugCapturingConsole(RichConsole):
    """
    Rich Console that also writes a plain text copy of its output to a logger.

    Export summaries and status lines printed by the CLI end up in the debug
    log file next to the request and retry records, so a single file shows
    what the user saw and which API calls produced it.
    """

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        """
        Initialize the capturing console

        Args:
            debug_logger: Logger that receives the plain text copy, if any
            *args: Positional arguments passed to Rich Console
            **kwargs: Keyword arguments passed to Rich Console
        """
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger
        self._log_prefix = "[CONSOLE] "

    def print(self, *objects, **kwargs):
        """
        Print to the terminal and copy the text to the debug logger

        The copy is only rendered when the logger has DEBUG enabled.
        """
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self._render_to_plain_text(*objects, **kwargs)
            # Blank lines and spacers are not logged
            if plain_text.strip():
                self.debug_logger.debug(f"{self._log_prefix}{plain_text}")

    def _render_to_plain_text(self, *objects, **kwargs) -> str:
        """
        Render the objects without Rich markup

        Args:
            *objects: Objects as passed to print()
            **kwargs: Print options such as style or end

        Returns:
            Text with markup and ANSI escape sequences stripped
        """
        string_buffer = io.StringIO()
        temp_console = RichConsole(
            file=string_buffer,
            force_terminal=False,
            width=self.width,
            legacy_windows=False
        )
        temp_console.print(*objects, **kwargs)
        return _ANSI_ESCAPE.sub('', string_buffer.getvalue()).rstrip()


def create_debug_console(debug_enabled: bool = False,
                        debug_logger: Optional[logging.Logger] = None,
                        quiet: bool = False) -> RichConsole:
    """
    Create appropriate console instance based on debug mode.

    Args:
        debug_enabled: Whether debug mode is enabled
        debug_logger: Logger instance for debug output
        quiet: Suppress regular console output

    Returns:
        DebugCapturingConsole if debug enabled, regular Console otherwise
    """
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger, quiet=quiet)
    return RichConsole(quiet=quiet)


def setup_logging(level: str = "info", debug: bool = False,
                  log_file: str = "podcast_analytics_debug.log") -> Optional[logging.Logger]:
    """
    Configure the root logger.

    Args:
        level: Level name used when debug is off
        debug: Log everything and append it to log_file
        log_file: Path of the debug log

    Returns:
        Logger that captures console output in debug mode, else None
    """
    root_logger = logging.getLogger()

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if not debug:
        root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
        return None

    root_logger.setLevel(logging.DEBUG)
    log_path = os.path.abspath(log_file)
    file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Dedicated logger for Rich console output capture
    console_logger = logging.getLogger("debug_console")
    console_logger.setLevel(logging.DEBUG)
    for handler in console_logger.handlers[:]:
        console_logger.removeHandler(handler)
    console_file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
    console_file_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
    console_logger.addHandler(console_file_handler)
    console_logger.propagate = False

    root_logger.info(f"Debug logging enabled - appending to {log_path}")
    return console_logger
