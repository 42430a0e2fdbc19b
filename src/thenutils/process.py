"""
Process Wrappers

- exec_command: run a shell command to completion and collect its output
- spawn: start a long-lived child and keep a handle to it, awaitable for its
  exit code
"""

import asyncio
import logging
import signal as signal_module
from dataclasses import dataclass
from typing import Any, Dict, Generator, Optional, Sequence, Union

from .iteration import first_defined
from .utils.config_manager import get_config
from .utils.exceptions import ProcessExecutionError

logger = logging.getLogger(__name__)

BUFFER_ENCODING = "buffer"


@dataclass
class CommandResult:
    """Buffered output of a command that exited with status 0."""
    stdout: Union[str, bytes]
    stderr: Union[str, bytes]


def _signal_name(returncode: Optional[int]) -> Optional[str]:
    if returncode is None or returncode >= 0:
        return None
    try:
        return signal_module.Signals(-returncode).name
    except ValueError:
        return f"signal {-returncode}"


def _decode(data: bytes, encoding: str) -> Union[str, bytes]:
    if encoding == BUFFER_ENCODING:
        return data
    return data.decode(encoding, errors="replace")


async def exec_command(
    command: str,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    encoding: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """
    Run ``command`` through the shell and buffer stdout and stderr.

    Args:
        command: Command line to execute
        cwd: Working directory for the command
        env: Environment for the child (inherits the current one if None)
        encoding: Output encoding; defaults to ``process.default_encoding``.
            ``"buffer"`` keeps raw bytes.
        timeout: Seconds to wait before killing the child; defaults to
            ``process.default_timeout``. When both are None the
            command may run forever.

    Returns:
        CommandResult with the collected output

    Raises:
        ProcessExecutionError: non-zero exit, death by signal or timeout
        OSError: the shell could not be started
    """
    process_config = get_config().process
    encoding = first_defined(encoding, process_config.default_encoding)
    timeout = first_defined(timeout, process_config.default_timeout)

    kwargs: Dict[str, Any] = {}
    if process_config.shell:
        kwargs["executable"] = process_config.shell

    logger.debug(f"Executing: {command}")
    process = await asyncio.create_subprocess_shell(
        command,
        cwd=cwd,
        env=env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        **kwargs,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        try:
            process.kill()
        except ProcessLookupError:
            # exited between the timeout and the kill
            pass
        await process.wait()
        raise ProcessExecutionError(
            command,
            process.returncode,
            signal=_signal_name(process.returncode),
            timed_out=True,
        )

    if process.returncode != 0:
        raise ProcessExecutionError(
            command,
            process.returncode,
            signal=_signal_name(process.returncode),
            stdout=_decode(stdout, encoding),
            stderr=_decode(stderr, encoding),
        )

    return CommandResult(stdout=_decode(stdout, encoding), stderr=_decode(stderr, encoding))


class SpawnedProcess:
    """Handle to a running child process.

    Awaiting the handle waits for the child to exit and returns its exit
    code. The live ``asyncio.subprocess.Process`` stays reachable through
    ``process`` so callers can feed stdin, read output incrementally or send
    signals in the meantime.
    """

    def __init__(self, process: asyncio.subprocess.Process, program: str):
        self.process = process
        self.program = program

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode

    @property
    def stdin(self) -> Optional[asyncio.StreamWriter]:
        return self.process.stdin

    @property
    def stdout(self) -> Optional[asyncio.StreamReader]:
        return self.process.stdout

    @property
    def stderr(self) -> Optional[asyncio.StreamReader]:
        return self.process.stderr

    def send_signal(self, sig: int) -> None:
        self.process.send_signal(sig)

    def terminate(self) -> None:
        self.process.terminate()

    def kill(self) -> None:
        self.process.kill()

    async def wait(self) -> int:
        """Wait for the child to exit and return its exit code."""
        returncode = await self.process.wait()
        logger.debug(f"{self.program} (pid {self.pid}) exited with {returncode}")
        return returncode

    def __await__(self) -> Generator[Any, None, int]:
        return self.wait().__await__()

    def __repr__(self) -> str:
        return f"<SpawnedProcess {self.program!r} pid={self.pid} returncode={self.returncode}>"


async def spawn(program: str, args: Sequence[str] = (), **kwargs: Any) -> SpawnedProcess:
    """
    Start ``program`` with ``args`` and return a handle to it.

    Awaiting ``spawn`` starts the child and returns the handle; awaiting the
    handle returns the exit code: ``child = await spawn(...)`` then
    ``code = await child``.

    Keyword arguments go straight to ``asyncio.create_subprocess_exec``
    (``stdin``, ``stdout``, ``stderr``, ``cwd``, ``env``...).

    Raises:
        OSError: the program could not be started
    """
    process = await asyncio.create_subprocess_exec(program, *args, **kwargs)
    logger.debug(f"Spawned {program} with pid {process.pid}")
    return SpawnedProcess(process, program)
