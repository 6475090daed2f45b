"""Subprocess execution for release-deploy

Every command is an argv list, never a shell string. Output is merged,
streamed line by line to the console and the logger, and a non-zero exit
or a timeout raises ProcessError.
"""

import logging
import os
import signal
import subprocess
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..api.exceptions import ProcessError
from . import output

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Seconds to drain output once the command itself has exited. A background
# child holding the pipe open does not keep the call waiting past this.
READER_GRACE = 2


class CommandRunner:
    """Runs external commands with a timeout"""

    def __init__(self,
                 timeout: Optional[float] = None,
                 on_line: Optional[Callable[[str], None]] = None,
                 echo: bool = True):
        """
        Initialize command runner

        Args:
            timeout: Seconds before a command is killed, None or <= 0 disables it
            on_line: Sink for each output line, defaults to the console
            echo: Print each command before running it
        """
        self.timeout = timeout if timeout and timeout > 0 else None
        self.on_line = on_line or output.process_line
        self.echo = echo

    def build(self, argv: Sequence[str], sudo: bool = False) -> List[str]:
        """Final argv including the elevation prefix"""
        argv = [str(arg) for arg in argv]
        if sudo:
            return ["sudo"] + argv
        return argv

    def run(self,
            argv: Sequence[str],
            cwd: Optional[PathLike] = None,
            sudo: bool = False,
            env: Optional[Dict[str, str]] = None) -> str:
        """
        Run a command to completion, streaming its output

        Args:
            argv: Command and arguments
            cwd: Working directory
            sudo: Prefix the command with sudo
            env: Extra environment variables layered over the current environment

        Returns:
            Combined stdout and stderr

        Raises:
            ProcessError: Command could not start, exited non-zero or timed out
        """
        cmd = self.build(argv, sudo)
        logger.info("Running: %s", " ".join(cmd))
        if self.echo:
            output.command(cmd)

        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(cwd) if cwd is not None else None,
                env={**os.environ, **env} if env else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                start_new_session=True,
            )
        except OSError as e:
            raise ProcessError(cmd, -1, str(e), message=f"Cannot start {cmd[0]}: {e}") from e

        lines: List[str] = []
        reader = threading.Thread(target=self._pump, args=(proc, lines), daemon=True)
        reader.start()

        try:
            returncode = proc.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            self._kill_group(proc)
            proc.wait()
            reader.join(READER_GRACE)
            logger.error("Timed out after %ss: %s", self.timeout, " ".join(cmd))
            raise ProcessError(cmd, -1, "\n".join(lines), timed_out=True)

        reader.join(READER_GRACE)
        text = "\n".join(lines)
        if returncode != 0:
            logger.error("Exit %d: %s", returncode, " ".join(cmd))
            raise ProcessError(cmd, returncode, text)
        return text

    def capture(self, argv: Sequence[str], cwd: Optional[PathLike] = None) -> str:
        """
        Run a read-only query and return its stdout

        Raises:
            ProcessError: Command could not start, exited non-zero or timed out
        """
        cmd = self.build(argv)
        logger.debug("Capturing: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd is not None else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ProcessError(cmd, -1, "", timed_out=True) from e
        except OSError as e:
            raise ProcessError(cmd, -1, str(e), message=f"Cannot start {cmd[0]}: {e}") from e

        if result.returncode != 0:
            raise ProcessError(cmd, result.returncode, result.stdout + result.stderr)
        return result.stdout

    @staticmethod
    def _kill_group(proc: subprocess.Popen) -> None:
        """Kill the command and everything it started"""
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            # sudo children cannot be signalled by the invoking user
            proc.kill()

    def _pump(self, proc: subprocess.Popen, lines: List[str]) -> None:
        for raw in proc.stdout:
            line = raw.rstrip("\n")
            lines.append(line)
            if line.strip():
                logger.debug(">> %s", line)
                self.on_line(line)
        proc.stdout.close()
