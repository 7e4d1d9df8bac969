"""Standardized subprocess utilities for command execution."""

import logging
import os
import subprocess
import threading
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)


class SubprocessError(Exception):
    """Exception raised when a subprocess command fails."""

    def __init__(
        self,
        cmd: str,
        returncode: Optional[int],
        stderr: str,
        stdout: str = "",
        cwd: Optional[Path] = None,
        timed_out: bool = False,
    ):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        self.cwd = cwd
        self.timed_out = timed_out
        location = f" (in {cwd})" if cwd else ""
        if timed_out:
            summary = f"Command timed out{location}: {cmd}"
        else:
            summary = f"Command failed with exit code {returncode}{location}: {cmd}"
        super().__init__(f"{summary}\nstderr: {stderr}")


def _cmd_str(cmd: Union[str, List[str]]) -> str:
    return cmd if isinstance(cmd, str) else " ".join(cmd)


def run_command(
    cmd: Union[str, List[str]],
    *,
    cwd: Optional[Path] = None,
    capture_output: bool = True,
    check: bool = True,
    timeout: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Run a command with standardized error handling.

    Args:
        cmd: Command to run (argv list preferred)
        cwd: Working directory
        capture_output: Capture stdout/stderr
        check: Raise exception on non-zero exit
        timeout: Timeout in seconds
        env: Complete environment for the child (None inherits ours)

    Returns:
        CompletedProcess with stdout, stderr, returncode

    Raises:
        SubprocessError: If check=True and command fails, or on timeout
        FileNotFoundError: If the executable does not exist
    """
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
            env=dict(env) if env is not None else None,
            check=False,  # We handle check ourselves for better error messages
        )
    except subprocess.TimeoutExpired as e:
        logger.error(f"Command timed out after {timeout}s: {_cmd_str(cmd)}")
        stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
        raise SubprocessError(
            cmd=_cmd_str(cmd),
            returncode=None,
            stderr=stderr,
            cwd=cwd,
            timed_out=True,
        ) from e

    if check and result.returncode != 0:
        raise SubprocessError(
            cmd=_cmd_str(cmd),
            returncode=result.returncode,
            stderr=result.stderr or "",
            stdout=result.stdout or "",
            cwd=cwd,
        )

    return result


def run_git_command(
    args: List[str],
    *,
    cwd: Optional[Path] = None,
    check: bool = True,
    timeout: Optional[float] = 30,
) -> subprocess.CompletedProcess:
    """
    Run a git command with standardized error handling.

    Args:
        args: Git command arguments (without 'git' prefix)
        cwd: Working directory (git repo)
        check: Raise exception on non-zero exit
        timeout: Timeout in seconds (default: 30)

    Raises:
        SubprocessError: If check=True and command fails
    """
    try:
        return run_command(["git"] + args, cwd=cwd, check=check, timeout=timeout)
    except SubprocessError:
        logger.debug(f"Git command failed in {cwd}: {' '.join(args)}")
        raise


def stream_command(
    cmd: List[str],
    *,
    on_line: Callable[[str], None],
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> int:
    """
    Run a command, forwarding each line of combined stdout/stderr to ``on_line``.

    Returns the exit code. When ``timeout`` elapses the process is killed and
    SubprocessError(timed_out=True) is raised.
    """
    process = subprocess.Popen(
        cmd,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        bufsize=1,
    )

    timed_out = threading.Event()

    def _kill():
        timed_out.set()
        process.kill()

    timer = threading.Timer(timeout, _kill) if timeout else None
    if timer:
        timer.start()
    try:
        for line in process.stdout:
            on_line(line.rstrip("\n"))
        returncode = process.wait()
    finally:
        if timer:
            timer.cancel()
        process.stdout.close()

    if timed_out.is_set():
        raise SubprocessError(
            cmd=_cmd_str(cmd), returncode=None, stderr="", cwd=cwd, timed_out=True,
        )
    return returncode


def check_command_exists(command: str) -> bool:
    """
    Check if a command exists in PATH.

    Args:
        command: Command name to check

    Returns:
        True if command exists, False otherwise
    """
    try:
        result = subprocess.run(
            ["which", command],
            capture_output=True,
            text=True,
            check=False,
        )
        return result.returncode == 0
    except OSError:
        return False


def merged_environment(extra: Optional[Mapping[str, str]] = None) -> dict:
    """Copy of the current process environment with ``extra`` applied.

    The parent environment is never modified.
    """
    env = os.environ.copy()
    if extra:
        env.update(extra)
    return env
