"""Composition root for the trending repositories list.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation
- Core state machine initialization
- Interactive CLI loop
"""

import asyncio
import json
import logging
import sys
from typing import Any

from trending.adapters.cli.commands import CLICommandHandler, state_to_dict
from trending.adapters.github.graphql import GitHubTrendingAdapter
from trending.config import Settings, load_settings
from trending.core.models import ReducerState
from trending.core.state_machine import RepositoryStateMachine


async def _run_cli_interactive(cli_handler: CLICommandHandler) -> None:
    """Run interactive CLI loop.

    Provides a REPL-like interface for list commands.

    Args:
        cli_handler: CLICommandHandler instance for executing commands.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting interactive CLI. Type 'help' for available commands or 'exit' to quit.")

    loop = asyncio.get_running_loop()

    while True:
        try:
            # Read command from stdin in a thread to avoid blocking
            command_line = await loop.run_in_executor(
                None,
                input,
                "trending> "
            )

            command_line = command_line.strip()

            if not command_line:
                continue

            if command_line.lower() == "exit":
                logger.info("Exiting CLI")
                break

            if command_line.lower() == "help":
                _print_cli_help()
                continue

            # Parse command and arguments
            parts = command_line.split(maxsplit=1)
            command = parts[0].lower()
            args_str = parts[1] if len(parts) > 1 else ""

            # Try to parse arguments as JSON
            try:
                args = json.loads(args_str) if args_str else {}
            except json.JSONDecodeError:
                logger.error("Invalid JSON arguments. Use 'help' for command syntax.")
                continue

            try:
                result = await _execute_cli_command(cli_handler, command, args)
                print(json.dumps(result, indent=2, default=str))
            except Exception as e:
                logger.error(f"Command execution error: {e}", exc_info=True)
                print(json.dumps({
                    "status": "error",
                    "message": str(e)
                }, indent=2))

        except EOFError:
            # Ctrl+D to exit
            logger.info("EOF received, exiting CLI")
            break
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            continue


async def _execute_cli_command(
    cli_handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Execute a CLI command.

    Args:
        cli_handler: CLICommandHandler instance.
        command: Command name.
        args: Command arguments.

    Returns:
        Command result dictionary.

    Raises:
        ValueError: If command is not recognized.
    """
    if command == "fetch":
        return await cli_handler.fetch()

    elif command == "filter":
        return await cli_handler.filter_by_category(args.get("category"))

    elif command == "more":
        return await cli_handler.load_more()

    elif command == "show":
        return await cli_handler.show(args.get("format", "json"))

    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")


def _print_cli_help() -> None:
    """Print CLI help message."""
    help_text = """
Available Commands (JSON format):

  fetch
    Load the first page of trending repositories. Clears any filter.

    Example: fetch

  filter
    Show only repositories whose primary language matches.
    Optional: category (omit or leave empty to show everything)

    Example: filter {"category": "Dart"}

  more
    Load the next page and append it to the list.

    Example: more

  show
    Print the current list state.
    Optional: format ("json" or "text")

    Example: show {"format": "text"}

  help
    Show this help message.

  exit
    Exit the CLI.

Note: Commands that take arguments accept a single JSON object
after the command name on the same line.
    """
    print(help_text)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_state_machine(settings: Settings) -> tuple[RepositoryStateMachine, GitHubTrendingAdapter]:
    """Instantiate the fetch adapter and wire it into a state machine.

    Args:
        settings: Validated application settings.

    Returns:
        Tuple of (state_machine, fetch_adapter). The caller owns both.
    """
    fetcher = GitHubTrendingAdapter(
        token=settings.github_token,
        api_url=settings.github_api_url,
        query=settings.search_query,
        page_size=settings.page_size,
        timeout_seconds=settings.fetch_timeout_seconds,
    )
    return RepositoryStateMachine(fetcher=fetcher), fetcher


async def bootstrap() -> None:
    """Load configuration, wire adapters, and start the interactive CLI.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Instantiate the fetch adapter and state machine
    4. Fetch the first page (and apply the initial filter, if configured)
    5. Run the interactive CLI until exit
    """
    # Step 1: Load configuration
    settings = load_settings()

    # Step 2: Configure logging
    configure_logging("DEBUG" if settings.debug else settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading trending repositories list...")

    if not settings.github_token:
        logger.warning("GITHUB_TOKEN is not set; the GitHub GraphQL API will reject requests")

    # Step 3: Wire adapters and core
    state_machine, fetcher = build_state_machine(settings)

    def _log_state(state: ReducerState) -> None:
        logger.info(f"List state: {state_to_dict(state)['kind']}")

    remove_listener = state_machine.add_listener(_log_state)
    cli_handler = CLICommandHandler(state_machine)

    try:
        # Step 4: Initial load
        result = await cli_handler.fetch()
        if result["status"] == "success" and settings.initial_category:
            result = await cli_handler.filter_by_category(settings.initial_category)
        print(json.dumps(result, indent=2, default=str))

        # Step 5: Interactive loop
        await _run_cli_interactive(cli_handler)

    finally:
        remove_listener()
        await state_machine.close()
        await fetcher.close()


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
