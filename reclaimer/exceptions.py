"""
Custom exceptions for the disk reclaimer.
"""


class ReclaimerError(Exception):
    """Base exception for all reclaimer errors."""
    pass


class CommandError(ReclaimerError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, argv, returncode: int, stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed with exit code {returncode}: {' '.join(self.argv)}"
        if stderr:
            message = f"{message}\n{stderr}"
        super().__init__(message)


class ParseError(ReclaimerError):
    """Raised when disk measurement output is not a clean integer."""

    def __init__(self, output: str):
        self.output = output
        super().__init__(f"Could not parse available disk space from output: {output!r}")


class InputError(ReclaimerError):
    """Raised when an action input has an invalid value."""
    pass
