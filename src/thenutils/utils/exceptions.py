"""Custom exceptions for the thenutils helpers."""

from typing import Optional, Union


class ThenUtilsError(Exception):
    """Base class for custom exceptions raised by thenutils."""
    pass


class ProcessExecutionError(ThenUtilsError):
    """A command exited with a non-zero status, died of a signal or timed out.

    Carries the exit metadata of the child so callers can branch on it
    without parsing the message.
    """

    def __init__(
        self,
        command: str,
        returncode: Optional[int],
        signal: Optional[str] = None,
        stdout: Union[str, bytes] = "",
        stderr: Union[str, bytes] = "",
        timed_out: bool = False,
    ):
        if timed_out:
            reason = "timed out"
        elif signal is not None:
            reason = f"was killed by {signal}"
        else:
            reason = f"exited with code {returncode}"
        super().__init__(f"Command failed: {command} {reason}")
        self.command = command
        self.returncode = returncode
        self.signal = signal
        self.stdout = stdout
        self.stderr = stderr
        self.timed_out = timed_out


class FeatureDisabledError(ThenUtilsError, AttributeError):
    """Raised when an operation from a disabled wrapper set is requested."""

    def __init__(self, name: str, feature: str):
        super().__init__(f"'{name}' is unavailable: the '{feature}' feature is disabled")
        self.name = name
        self.feature = feature
