"""External adapters for the trending repositories list.

This package contains all external dependencies (GitHub API, terminal I/O)
and provides implementations of the core port interfaces.

Adapter Organization:

- github/: Fetch adapters for retrieving repository pages
- cli/: Command-line interface that drives the list state machine
"""
