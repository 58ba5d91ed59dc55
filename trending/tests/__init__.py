"""Test suite for the trending repositories list.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - No third-party dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Tests for adapter implementations
   - HTTP traffic replaced with mocked httpx clients
   - Validates adapter behavior and error handling

3. fakes/: Port implementations for testing
   - In-memory implementation of RepositoryFetchPort
   - Used by core unit tests
"""
