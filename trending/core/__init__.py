"""Core domain logic for the trending repositories list.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .models import (
    Event,
    Failed,
    FetchPage,
    FetchRequested,
    FilterByCategoryRequested,
    Idle,
    Item,
    Loaded,
    Loading,
    LoadMoreRequested,
    ReducerState,
)

__all__ = [
    "Event",
    "Failed",
    "FetchPage",
    "FetchRequested",
    "FilterByCategoryRequested",
    "Idle",
    "Item",
    "Loaded",
    "Loading",
    "LoadMoreRequested",
    "ReducerState",
]
