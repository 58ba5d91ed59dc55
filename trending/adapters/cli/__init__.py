"""Command-line interface adapters.

Provides CLI commands for driving the repository list:
- fetch: Load the first page
- filter: Show one category only
- more: Append the next page
- show: Print the current state
"""
