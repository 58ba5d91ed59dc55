"""Fetch adapters for retrieving trending repositories.

Implementations:
- GitHub GraphQL search API
"""
