"""Trending repositories list: an event-driven state machine with pluggable fetching."""
