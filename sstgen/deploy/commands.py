"""
External process execution for the deployment runner.
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], None]


class CommandFailed(Exception):
    """A command exited non-zero or could not be started."""

    def __init__(self, command: List[str], returncode: Optional[int], output: str):
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(f"{' '.join(command)} failed (exit {returncode})")

    def tail(self, lines: int = 20) -> str:
        return "\n".join(self.output.splitlines()[-lines:])


def run_command(command: List[str], cwd: Optional[Path] = None, on_line: Optional[LineCallback] = None) -> str:
    """
    Run a command to completion and return its combined output.

    Args:
        command: Command and arguments
        cwd: Working directory for the process
        on_line: Called with each non-empty output line as it arrives

    Raises:
        CommandFailed: On a non-zero exit, or if the executable is missing
    """
    logger.debug(f"Running {' '.join(command)} in {cwd or '.'}")
    try:
        process = subprocess.Popen(
            command,
            cwd=str(cwd) if cwd else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            bufsize=1,
        )
    except OSError as e:
        raise CommandFailed(command, None, str(e))

    output_lines = []
    for line in process.stdout:
        line = line.rstrip()
        output_lines.append(line)
        if on_line and line.strip():
            on_line(line)

    process.wait()
    output = "\n".join(output_lines)
    if process.returncode != 0:
        raise CommandFailed(command, process.returncode, output)
    return output
