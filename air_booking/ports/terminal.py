"""Terminal port - Abstraction over an interactive host terminal session.

Session management (opening, keep-alive, emulation) is out of scope: a
factory hands out sessions, the workflows send commands and close them.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import ContextManager, Iterator, Protocol, Union

Screen = Union[str, bool]


class TerminalSessionPort(Protocol):
    """One open terminal session."""

    def execute_command(self, command: str) -> Screen:
        """Send a command and return the resulting screen text.

        Some hosts acknowledge a command with a boolean instead of a screen.
        """
        ...

    def close_session(self) -> None:
        """Release the session. Failures propagate to the caller."""
        ...


class TerminalFactory(Protocol):
    """Creates terminal sessions on demand."""

    def __call__(self) -> TerminalSessionPort:
        ...


@contextmanager
def managed_session(session: TerminalSessionPort) -> Iterator[TerminalSessionPort]:
    """Close an open session exactly once on every exit path.

    An error raised while closing propagates. When the body already
    failed, that error stays attached as the close error's __context__.
    """
    try:
        yield session
    finally:
        session.close_session()


def terminal_session(factory: TerminalFactory) -> ContextManager[TerminalSessionPort]:
    """Open a session with ``factory`` and close it like managed_session."""
    return managed_session(factory())
