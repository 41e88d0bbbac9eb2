"""
Thin wrapper around subprocess for the OS and Docker tooling.

Commands are executed without a shell; stdout and stderr are captured
together so failures can be reported with the full command output.
"""

import logging
import subprocess
from typing import List

from storage.errors import CommandError

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs external commands, optionally escalating through sudo."""

    def __init__(self, use_sudo: bool = True, timeout_seconds: int | None = None):
        self.use_sudo = use_sudo
        self.timeout_seconds = timeout_seconds

    def run(self, *argv: str) -> str:
        """
        Run a command and return its combined stdout/stderr.

        Raises:
            CommandError: non-zero exit, missing executable or timeout
        """
        if not argv:
            raise ValueError("argv must not be empty")

        try:
            result = subprocess.run(
                list(argv),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as e:
            logger.error(f"Command not found: {argv[0]}")
            raise CommandError(argv, 127, str(e)) from e
        except subprocess.TimeoutExpired as e:
            output = e.output or ""
            if isinstance(output, bytes):
                output = output.decode("utf-8", errors="replace")
            logger.error(f"Command timed out after {self.timeout_seconds}s: {' '.join(argv)}")
            raise CommandError(argv, -1, f"timed out after {self.timeout_seconds}s {output}") from e

        output = result.stdout or ""
        logger.info(f"Command: {' '.join(argv)}\nOutput: {output}")
        if result.returncode != 0:
            raise CommandError(argv, result.returncode, output)
        return output

    def privileged(self, *argv: str) -> str:
        """Run a command that needs root (prefixed with sudo when enabled)."""
        return self.run(*self.privileged_argv(*argv))

    def privileged_argv(self, *argv: str) -> List[str]:
        if self.use_sudo:
            return ["sudo", *argv]
        return list(argv)
