"""Port interfaces for the trending repositories list.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - RepositoryFetchPort: Retrieve pages of trending repositories

2. **Driving Ports** (adapters/external systems call into core)
   - RepositoryListPort: Submit events, read and observe list state
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable

from .models import Event, FetchPage, ReducerState


class FetchError(Exception):
    """Raised by fetch adapters on network, decoding, or server failure."""


class StateMachineClosedError(RuntimeError):
    """Raised when an event is submitted to a closed state machine."""


StateListener = Callable[[ReducerState], None]


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class RepositoryFetchPort(ABC):
    """Port for retrieving pages of repositories from a backend.

    Adapters implementing this port fetch data from an external source
    (the GitHub GraphQL API, a fixture file, an in-memory fake) and
    normalize it into the core's domain models.

    Implementations must handle:
    - Cursor-based pagination
    - Timeouts (the core never cancels a fetch)
    - Translating backend failures into FetchError
    """

    @abstractmethod
    async def fetch(self, after: str | None = None) -> FetchPage:
        """Fetch one page of repositories.

        Args:
            after: Continuation cursor from a previous page.
                If None, fetch the first page.

        Returns:
            FetchPage with items in backend order, the cursor for the
            next page, and whether more pages exist.

        Raises:
            FetchError: If the backend is unreachable or returns an error.
                The core converts any exception into a Failed state.
        """


# ============================================================================
# DRIVING PORTS (External systems call into core)
# ============================================================================


class RepositoryListPort(ABC):
    """Port for driving the repository list from a UI, CLI, or test."""

    @property
    @abstractmethod
    def state(self) -> ReducerState:
        """The most recently emitted state."""

    @property
    @abstractmethod
    def active_category(self) -> str | None:
        """The category filter applied to loaded items, if any."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Whether close() has been called."""

    @abstractmethod
    def submit(self, event: Event) -> None:
        """Queue an event for sequential processing.

        Raises:
            StateMachineClosedError: If the port has been closed.
        """

    @abstractmethod
    async def handle(self, event: Event) -> list[ReducerState]:
        """Process one event and return the states it emitted.

        The event is ordered after every event submitted or handled
        before it. Never raises for any event; fetch failures become
        Failed states.
        """

    @abstractmethod
    async def drain(self) -> None:
        """Wait until every submitted event has been processed."""

    @abstractmethod
    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback for each emitted state.

        Returns:
            A callable that removes the listener.
        """

    @abstractmethod
    def stream(self, maxsize: int = 0) -> AsyncIterator[ReducerState]:
        """Open an async iterator over every state emitted from now on.

        The iterator ends when the port is closed.

        Args:
            maxsize: Most unread states to buffer. 0 means no limit.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release listeners and streams and stop accepting events."""
