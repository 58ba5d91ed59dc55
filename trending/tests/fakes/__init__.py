"""Fake implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeRepositoryFetchPort: Queued pages and failures, recorded calls
"""

from .fetch import FakeRepositoryFetchPort

__all__ = [
    "FakeRepositoryFetchPort",
]
