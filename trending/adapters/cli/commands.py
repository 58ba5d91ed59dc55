"""CLI command implementations for the repository list.

This adapter maps CLI commands (fetch, filter, more, show) to events on a
RepositoryListPort. It handles CLI-specific formatting and error reporting.
"""

import logging
from typing import Any, assert_never

from trending.core.models import (
    Event,
    Failed,
    FetchRequested,
    FilterByCategoryRequested,
    Idle,
    Item,
    Loaded,
    Loading,
    LoadMoreRequested,
    ReducerState,
)
from trending.core.ports import RepositoryListPort

logger = logging.getLogger(__name__)


def item_to_dict(item: Item) -> dict[str, Any]:
    """Convert an item to a JSON-serializable dictionary."""
    return {
        "name": item.name,
        "description": item.description,
        "category": item.category,
        "url": item.url,
        "stars": item.stars,
    }


def state_to_dict(state: ReducerState) -> dict[str, Any]:
    """Convert a state to a JSON-serializable dictionary."""
    if isinstance(state, Loaded):
        return {
            "kind": "loaded",
            "total": len(state.all),
            "visible": [item_to_dict(item) for item in state.visible],
            "cursor": state.cursor,
            "has_more": state.has_more,
        }
    if isinstance(state, Failed):
        return {"kind": "failed", "description": state.description}
    if isinstance(state, Loading):
        return {"kind": "loading"}
    if isinstance(state, Idle):
        return {"kind": "idle"}
    assert_never(state)


class CLICommandHandler:
    """Handles CLI commands by submitting events to a RepositoryListPort."""

    def __init__(self, repository_list: RepositoryListPort):
        """Initialize the CLI command handler.

        Args:
            repository_list: RepositoryListPort implementation to drive.
        """
        self.repository_list = repository_list

    async def fetch(self) -> dict[str, Any]:
        """Load the first page, clearing any filter."""
        return await self._run("fetch", FetchRequested())

    async def filter_by_category(self, category: str | None = None) -> dict[str, Any]:
        """Show only repositories of one category (None or "" clears the filter)."""
        result = await self._run("filter", FilterByCategoryRequested(category))
        if result["status"] == "success":
            result["category"] = category or None
        return result

    async def load_more(self) -> dict[str, Any]:
        """Append the next page of repositories."""
        return await self._run("more", LoadMoreRequested())

    async def show(self, format: str = "json") -> dict[str, Any]:
        """Report the current state.

        Args:
            format: Output format ('json', 'text'). Default 'json'.
        """
        state = self.repository_list.state
        if format == "json":
            return {"status": "success", "operation": "show", "state": state_to_dict(state)}
        elif format == "text":
            return {"status": "success", "operation": "show", "data": self._format_state_as_text(state)}
        else:
            return {
                "status": "error",
                "operation": "show",
                "message": f"Unsupported format: {format}",
            }

    async def _run(self, operation: str, event: Event) -> dict[str, Any]:
        emitted = await self.repository_list.handle(event)
        state = self.repository_list.state

        # A no-op event leaves an earlier failure in place; only a new one is an error.
        last = emitted[-1] if emitted else None
        if isinstance(last, Failed):
            logger.error(f"Command {operation} failed: {last.description}")
            return {
                "status": "error",
                "operation": operation,
                "message": last.description,
                "state": state_to_dict(last),
            }

        result: dict[str, Any] = {
            "status": "success",
            "operation": operation,
            "state": state_to_dict(state),
        }
        if not emitted:
            result["message"] = f"Nothing to do: no repositories loaded ({type(state).__name__.lower()})"
        return result

    @staticmethod
    def _format_state_as_text(state: ReducerState) -> str:
        """Format a state as human-readable text."""
        if isinstance(state, Idle):
            return "No repositories loaded. Run 'fetch' first."
        if isinstance(state, Loading):
            return "Loading..."
        if isinstance(state, Failed):
            return f"Error: {state.description}"

        lines = [f"Showing {len(state.visible)} of {len(state.all)} repositories", ""]
        for item in state.visible:
            category = f" [{item.category}]" if item.category else ""
            lines.append(f"  {item.name}{category} ({item.stars} stars)")
            if item.description:
                lines.append(f"      {item.description}")
        if state.has_more:
            lines.append("")
            lines.append("More available. Run 'more' to load the next page.")
        return "\n".join(lines)


async def run_command(
    repository_list: RepositoryListPort,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Run a CLI command.

    Entry point for executing CLI commands. Maps command names to handler methods.

    Args:
        repository_list: RepositoryListPort implementation.
        command: Command name ('fetch', 'filter', 'more', 'show').
        args: Dictionary of command arguments.

    Returns:
        Dictionary with command result.

    Raises:
        ValueError: If command is not recognized.
    """
    handler = CLICommandHandler(repository_list)

    if command == "fetch":
        return await handler.fetch()

    elif command == "filter":
        return await handler.filter_by_category(args.get("category"))

    elif command == "more":
        return await handler.load_more()

    elif command == "show":
        return await handler.show(args.get("format", "json"))

    else:
        raise ValueError(f"Unknown command: {command}")
