"""Event-driven state machine for the trending repositories list.

The machine owns a single ReducerState. Events are processed strictly
one at a time in arrival order; the fetch port call is the only point
where processing suspends. Every state the machine emits is delivered,
in order, to registered listeners and open streams.

Transitions:
    any     + FetchRequested            -> Loading, then Loaded | Failed
    Loaded  + FilterByCategoryRequested -> Loaded (visible recomputed)
    Loaded  + LoadMoreRequested         -> Loaded (page appended) | Failed
    other   + Filter/LoadMore           -> nothing emitted
"""

import asyncio
import dataclasses
import logging
from collections.abc import Callable
from typing import Any, Never

from .models import (
    Event,
    Failed,
    FetchRequested,
    FilterByCategoryRequested,
    Idle,
    Loaded,
    Loading,
    LoadMoreRequested,
    ReducerState,
    filter_by_category,
)
from .ports import (
    RepositoryFetchPort,
    RepositoryListPort,
    StateListener,
    StateMachineClosedError,
)

logger = logging.getLogger(__name__)

_END_OF_STREAM = object()

# An event plus the future its handle() caller awaits (None for submit()).
_QueuedEvent = tuple[Event, "asyncio.Future[list[ReducerState]] | None"]


def describe_failure(error: BaseException) -> str:
    """Render a fetch failure as ``"<TypeName>: <message>"``.

    Falls back to the bare type name when the message is empty or
    cannot be rendered.
    """
    name = type(error).__name__
    try:
        message = str(error)
    except Exception:
        message = ""
    return f"{name}: {message}" if message else name


class StateStream:
    """Async iterator over the states emitted after it was opened.

    Ends when the stream is closed or its state machine is closed.

    Unread states are buffered. With the default ``maxsize`` of 0 the
    buffer is unbounded, so a stream that is never read should be
    closed. With a positive ``maxsize`` the oldest buffered state is
    dropped to make room for a new one, and ``dropped`` counts them.
    """

    def __init__(self, on_close: Callable[["StateStream"], None], maxsize: int = 0):
        if maxsize < 0:
            raise ValueError(f"maxsize must be non-negative, got {maxsize}")
        # The end marker is never dropped, so the queue itself stays unbounded.
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._maxsize = maxsize
        self._on_close = on_close
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        """Whether the stream has stopped receiving states."""
        return self._closed

    def _push(self, state: ReducerState) -> None:
        if self._closed:
            return
        if self._maxsize and self._queue.qsize() >= self._maxsize:
            self._queue.get_nowait()
            self.dropped += 1
            logger.debug(f"State stream full; dropped oldest state ({self.dropped} total)")
        self._queue.put_nowait(state)

    def _end(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_END_OF_STREAM)

    def close(self) -> None:
        """Stop receiving states. Already buffered states are still yielded."""
        if not self._closed:
            self._on_close(self)
            self._end()

    def __aiter__(self) -> "StateStream":
        return self

    async def __anext__(self) -> ReducerState:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END_OF_STREAM:
            raise StopAsyncIteration
        return item  # type: ignore[no-any-return]


class RepositoryStateMachine(RepositoryListPort):
    """Reduces list events into states using an injected fetch port.

    Events may be handed over with ``submit`` (fire and forget) or
    awaited with ``handle``. Both put the event on the same queue, which
    a single consumer task works through in arrival order, so at most
    one event is processed at a time and at most one fetch is in flight.
    The consumer exits when the queue is empty and is restarted by the
    next event.
    """

    def __init__(
        self,
        fetcher: RepositoryFetchPort,
        initial_state: ReducerState | None = None,
        active_category: str | None = None,
    ):
        """Initialize the state machine.

        Args:
            fetcher: Port used to load pages of repositories.
            initial_state: Seed state (defaults to Idle).
            active_category: Seed category filter, applied to pages
                appended by LoadMoreRequested.
        """
        self.fetcher = fetcher
        self._state: ReducerState = initial_state if initial_state is not None else Idle()
        self._active_category = active_category or None
        self._queue: asyncio.Queue[_QueuedEvent] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._listeners: list[StateListener] = []
        self._streams: list[StateStream] = []
        self._closed = False

    async def __aenter__(self) -> "RepositoryStateMachine":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    @property
    def state(self) -> ReducerState:
        """The most recently emitted state."""
        return self._state

    @property
    def active_category(self) -> str | None:
        """The category filter applied to loaded items, if any."""
        return self._active_category

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    # ------------------------------------------------------------------
    # Event intake
    # ------------------------------------------------------------------

    def submit(self, event: Event) -> None:
        """Queue an event for processing by the consumer task.

        Must be called from within a running event loop.

        Raises:
            StateMachineClosedError: If the machine has been closed.
        """
        if self._closed:
            raise StateMachineClosedError(
                f"Cannot submit {type(event).__name__}: state machine is closed"
            )
        self._enqueue(event, None)

    async def handle(self, event: Event) -> list[ReducerState]:
        """Process an event after every event queued before it.

        Fetch failures are converted into a Failed state; nothing is
        raised for any event. Events handled after close(), or still
        queued when close() is called, emit nothing.

        Returns:
            The states this event emitted, in order.
        """
        if self._closed:
            logger.debug(f"Ignoring {type(event).__name__}: state machine is closed")
            return []
        waiter: asyncio.Future[list[ReducerState]] = asyncio.get_running_loop().create_future()
        self._enqueue(event, waiter)
        return await waiter

    async def drain(self) -> None:
        """Wait until every queued event has been processed."""
        await self._queue.join()

    def _enqueue(
        self, event: Event, waiter: "asyncio.Future[list[ReducerState]] | None"
    ) -> None:
        self._queue.put_nowait((event, waiter))
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._consume())

    async def _consume(self) -> None:
        """Consumer loop: process queued events one at a time until empty."""
        while not self._queue.empty():
            event, waiter = self._queue.get_nowait()
            try:
                emitted = await self._process(event)
            except Exception as e:
                logger.error(f"Error processing {type(event).__name__}: {e}", exc_info=True)
                if waiter is not None and not waiter.done():
                    waiter.set_exception(e)
            else:
                if waiter is not None and not waiter.done():
                    waiter.set_result(emitted)
            finally:
                self._queue.task_done()

    async def _process(self, event: Event) -> list[ReducerState]:
        emitted: list[ReducerState] = []
        if isinstance(event, FetchRequested):
            await self._on_fetch_requested(emitted)
        elif isinstance(event, FilterByCategoryRequested):
            self._on_filter_requested(event.category, emitted)
        elif isinstance(event, LoadMoreRequested):
            await self._on_load_more_requested(emitted)
        else:
            self._on_unknown_event(event)
        return emitted

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _on_fetch_requested(self, emitted: list[ReducerState]) -> None:
        self._active_category = None
        self._emit(Loading(), emitted)

        try:
            page = await self.fetcher.fetch(None)
            loaded = Loaded(
                all=page.items,
                visible=page.items,
                cursor=page.cursor,
                has_more=page.has_more,
            )
        except Exception as e:
            logger.error(f"Failed to fetch repositories: {e}", exc_info=True)
            self._emit(Failed(describe_failure(e)), emitted)
            return

        logger.info(
            f"Fetched {len(loaded.all)} repositories (has_more={loaded.has_more})"
        )
        self._emit(loaded, emitted)

    def _on_filter_requested(
        self, category: str | None, emitted: list[ReducerState]
    ) -> None:
        state = self._state
        if not isinstance(state, Loaded):
            logger.debug(
                f"Ignoring filter {category!r}: no data in {type(state).__name__} state"
            )
            return

        self._active_category = category or None
        visible = filter_by_category(state.all, self._active_category)
        self._emit(dataclasses.replace(state, visible=visible), emitted)

    async def _on_load_more_requested(self, emitted: list[ReducerState]) -> None:
        state = self._state
        if not isinstance(state, Loaded):
            logger.debug(
                f"Ignoring load more: nothing to paginate in {type(state).__name__} state"
            )
            return

        try:
            page = await self.fetcher.fetch(state.cursor)
            all_items = state.all + page.items
            loaded = Loaded(
                all=all_items,
                visible=filter_by_category(all_items, self._active_category),
                cursor=page.cursor,
                has_more=page.has_more,
            )
        except Exception as e:
            logger.error(
                f"Failed to fetch repositories after cursor {state.cursor!r}: {e}",
                exc_info=True,
            )
            self._emit(Failed(describe_failure(e)), emitted)
            return

        logger.info(
            f"Loaded {len(page.items)} more repositories "
            f"({len(all_items)} total, has_more={page.has_more})"
        )
        self._emit(loaded, emitted)

    def _on_unknown_event(self, event: Never) -> None:
        # Typed Never so a type checker reports any unhandled Event variant.
        logger.warning(f"Ignoring unsupported event: {event!r}")

    def _emit(self, state: ReducerState, emitted: list[ReducerState]) -> None:
        self._state = state
        emitted.append(state)
        logger.debug(f"State -> {type(state).__name__}")

        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning(f"State listener error: {e}", exc_info=True)

        for stream in list(self._streams):
            stream._push(state)

    # ------------------------------------------------------------------
    # Observation and teardown
    # ------------------------------------------------------------------

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback invoked synchronously for each emitted state.

        Exceptions raised by the listener are logged and otherwise ignored.

        Returns:
            A callable that removes the listener. Calling it twice is safe.
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def stream(self, maxsize: int = 0) -> StateStream:
        """Open a stream of every state emitted from now on.

        A stream opened on a closed machine is already ended.

        Args:
            maxsize: Most unread states to buffer; older ones are dropped
                when it is exceeded. 0 buffers without limit.
        """
        stream = StateStream(on_close=self._remove_stream, maxsize=maxsize)
        if self._closed:
            stream._end()
        else:
            self._streams.append(stream)
        return stream

    def _remove_stream(self, stream: StateStream) -> None:
        if stream in self._streams:
            self._streams.remove(stream)

    async def close(self) -> None:
        """Stop accepting events and release listeners and streams.

        Waits for the event being processed, if any, to finish. An
        in-flight fetch is never cancelled. Queued events that have not
        started are discarded.
        """
        if self._closed:
            return
        self._closed = True

        discarded = 0
        while not self._queue.empty():
            _, waiter = self._queue.get_nowait()
            if waiter is not None and not waiter.done():
                waiter.set_result([])
            self._queue.task_done()
            discarded += 1
        if discarded:
            logger.warning(f"Discarded {discarded} pending event(s) on close")

        # The queue is empty, so the consumer exits after the in-flight event.
        if self._worker is not None:
            await self._worker
        self._worker = None

        for stream in list(self._streams):
            stream._end()
        self._streams.clear()
        self._listeners.clear()
        logger.debug("State machine closed")
