from __future__ import annotations


class EngineCommandError(Exception):
    """A command sent to the crawling engine did not produce a usable result."""

    def __init__(self, command: str, message: str) -> None:
        super().__init__(f"{command}: {message}")
        self.command = command
        self.message = message


class EngineUnavailableError(EngineCommandError):
    """The engine could not be reached."""


class EngineCommandRejectedError(EngineCommandError):
    """The engine answered with an error status."""

    def __init__(self, command: str, message: str, *, status_code: int) -> None:
        super().__init__(command, message)
        self.status_code = status_code
