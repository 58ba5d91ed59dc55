"""Unit tests for CLI commands.

Tests verify that the CLI commands correctly:
- Map commands to state machine events
- Return JSON-serializable result dictionaries
- Report fetch failures and no-op commands without raising
"""

import json
from unittest.mock import AsyncMock, PropertyMock

import pytest

from trending.adapters.cli.commands import (
    CLICommandHandler,
    run_command,
    state_to_dict,
)
from trending.core.models import (
    Failed,
    FetchPage,
    FetchRequested,
    FilterByCategoryRequested,
    Idle,
    Item,
    Loaded,
    Loading,
    LoadMoreRequested,
)
from trending.core.ports import RepositoryListPort
from trending.core.state_machine import RepositoryStateMachine
from trending.tests.fakes import FakeRepositoryFetchPort

# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def dart_item() -> Item:
    """Create a Dart repository."""
    return Item(
        name="flutter/flutter",
        description="UI toolkit",
        category="Dart",
        url="https://github.com/flutter/flutter",
        stars=165000,
    )


@pytest.fixture
def go_item() -> Item:
    """Create a Go repository."""
    return Item(name="golang/go", description="", category="Go", stars=120000)


@pytest.fixture
def fetcher(dart_item: Item, go_item: Item) -> FakeRepositoryFetchPort:
    """A fetch port serving two pages."""
    port = FakeRepositoryFetchPort()
    port.set_page_for_cursor(None, FetchPage(items=(dart_item,), cursor="c1", has_more=True))
    port.set_page_for_cursor("c1", FetchPage(items=(go_item,), cursor=None, has_more=False))
    return port


@pytest.fixture
def handler(fetcher: FakeRepositoryFetchPort) -> CLICommandHandler:
    """A CLI handler driving a real state machine."""
    return CLICommandHandler(RepositoryStateMachine(fetcher=fetcher))


# ============================================================================
# state_to_dict
# ============================================================================


class TestStateToDict:
    """Serialization of states for CLI output."""

    def test_loaded(self, dart_item: Item, go_item: Item) -> None:
        """Loaded reports totals, visible items, and pagination."""
        state = Loaded(all=(dart_item, go_item), visible=(go_item,), cursor="c", has_more=True)

        result = state_to_dict(state)

        assert result["kind"] == "loaded"
        assert result["total"] == 2
        assert result["visible"] == [
            {"name": "golang/go", "description": "", "category": "Go", "url": "", "stars": 120000}
        ]
        assert result["cursor"] == "c"
        assert result["has_more"] is True
        json.dumps(result)

    @pytest.mark.parametrize(
        ("state", "expected"),
        [
            (Idle(), {"kind": "idle"}),
            (Loading(), {"kind": "loading"}),
            (Failed("Exception: Error"), {"kind": "failed", "description": "Exception: Error"}),
        ],
    )
    def test_other_states(self, state, expected) -> None:
        """Payload-free states serialize to their kind."""
        assert state_to_dict(state) == expected

    def test_unknown_state_is_rejected(self) -> None:
        """Values outside the state union fail loudly instead of reading as idle."""
        with pytest.raises(AssertionError):
            state_to_dict("loading")


# ============================================================================
# CLICommandHandler
# ============================================================================


class TestCLICommandHandler:
    """Commands against a real state machine and fake fetch port."""

    @pytest.mark.asyncio
    async def test_fetch_command(self, handler: CLICommandHandler) -> None:
        """fetch loads the first page."""
        result = await handler.fetch()

        assert result["status"] == "success"
        assert result["operation"] == "fetch"
        assert result["state"]["kind"] == "loaded"
        assert [i["name"] for i in result["state"]["visible"]] == ["flutter/flutter"]

    @pytest.mark.asyncio
    async def test_fetch_failure(
        self, handler: CLICommandHandler, fetcher: FakeRepositoryFetchPort
    ) -> None:
        """A failed fetch is reported as an error result, not raised."""
        fetcher.add_error(Exception("Error"))

        result = await handler.fetch()

        assert result["status"] == "error"
        assert result["message"] == "Exception: Error"
        assert result["state"] == {"kind": "failed", "description": "Exception: Error"}

    @pytest.mark.asyncio
    async def test_more_then_filter(self, handler: CLICommandHandler) -> None:
        """more appends the next page; filter narrows visible items."""
        await handler.fetch()

        more = await handler.load_more()
        assert more["state"]["total"] == 2

        filtered = await handler.filter_by_category("Go")
        assert filtered["status"] == "success"
        assert filtered["category"] == "Go"
        assert [i["name"] for i in filtered["state"]["visible"]] == ["golang/go"]

        cleared = await handler.filter_by_category("")
        assert cleared["category"] is None
        assert len(cleared["state"]["visible"]) == 2

    @pytest.mark.asyncio
    async def test_commands_before_fetch_are_noops(self, handler: CLICommandHandler) -> None:
        """filter and more before any fetch do nothing and say so."""
        for result in (await handler.filter_by_category("Dart"), await handler.load_more()):
            assert result["status"] == "success"
            assert result["state"] == {"kind": "idle"}
            assert "Nothing to do" in result["message"]

    @pytest.mark.asyncio
    async def test_noop_after_failed_fetch_is_not_an_error(
        self, handler: CLICommandHandler, fetcher: FakeRepositoryFetchPort
    ) -> None:
        """filter and more after a failure do nothing and do not repeat the error."""
        fetcher.add_error(Exception("Error"))
        await handler.fetch()

        for result in (await handler.filter_by_category("Dart"), await handler.load_more()):
            assert result["status"] == "success"
            assert result["state"] == {"kind": "failed", "description": "Exception: Error"}
            assert "Nothing to do" in result["message"]

    @pytest.mark.asyncio
    async def test_show_text(self, handler: CLICommandHandler) -> None:
        """show renders a human-readable listing."""
        await handler.fetch()

        result = await handler.show(format="text")

        assert result["status"] == "success"
        assert "Showing 1 of 1 repositories" in result["data"]
        assert "flutter/flutter [Dart] (165000 stars)" in result["data"]
        assert "Run 'more'" in result["data"]

    @pytest.mark.asyncio
    async def test_show_text_idle(self, handler: CLICommandHandler) -> None:
        """show before fetch explains what to do."""
        result = await handler.show(format="text")

        assert result["data"] == "No repositories loaded. Run 'fetch' first."

    @pytest.mark.asyncio
    async def test_show_unsupported_format(self, handler: CLICommandHandler) -> None:
        """Unknown formats are reported as errors."""
        result = await handler.show(format="xml")

        assert result["status"] == "error"
        assert "Unsupported format" in result["message"]


class TestCommandDispatch:
    """run_command maps names to events."""

    @pytest.fixture
    def mock_list(self) -> AsyncMock:
        """A mocked RepositoryListPort."""
        port = AsyncMock(spec=RepositoryListPort)
        port.handle.return_value = [Idle()]
        type(port).state = PropertyMock(return_value=Idle())
        return port

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("command", "args", "event"),
        [
            ("fetch", {}, FetchRequested()),
            ("filter", {"category": "Dart"}, FilterByCategoryRequested("Dart")),
            ("filter", {}, FilterByCategoryRequested(None)),
            ("more", {}, LoadMoreRequested()),
        ],
    )
    async def test_run_command_submits_event(
        self, mock_list: AsyncMock, command: str, args: dict, event
    ) -> None:
        """Each command handles exactly one event."""
        result = await run_command(mock_list, command, args)

        assert result["operation"] == command
        mock_list.handle.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_run_show_command(self, mock_list: AsyncMock) -> None:
        """show reads state without handling an event."""
        result = await run_command(mock_list, "show", {})

        assert result["state"] == {"kind": "idle"}
        mock_list.handle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_run_unknown_command(self, mock_list: AsyncMock) -> None:
        """Unknown commands raise ValueError."""
        with pytest.raises(ValueError, match="Unknown command: refresh"):
            await run_command(mock_list, "refresh", {})
