"""GitHub GraphQL fetch adapter.

Implements RepositoryFetchPort by running a repository search against
the GitHub GraphQL API. Search results are normalized into Item models;
the search connection's pageInfo supplies the cursor for pagination.
"""

import logging
from typing import Any

import httpx

from trending.core.models import FetchPage, Item
from trending.core.ports import FetchError, RepositoryFetchPort

logger = logging.getLogger(__name__)

SEARCH_REPOSITORIES_QUERY = """
query SearchRepositories($query: String!, $first: Int!, $after: String) {
  search(query: $query, type: REPOSITORY, first: $first, after: $after) {
    pageInfo {
      endCursor
      hasNextPage
    }
    nodes {
      ... on Repository {
        name
        nameWithOwner
        description
        url
        stargazerCount
        primaryLanguage {
          name
        }
      }
    }
  }
}
"""


class GitHubTrendingAdapter(RepositoryFetchPort):
    """Fetches trending repositories from the GitHub GraphQL search API."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com/graphql",
        query: str = "stars:>1000 sort:stars",
        page_size: int = 20,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize GitHub GraphQL adapter.

        Args:
            token: GitHub personal access token.
            api_url: GraphQL endpoint URL.
            query: Repository search query, e.g. "language:dart sort:stars".
            page_size: Repositories requested per page (1-100).
            timeout_seconds: HTTP timeout for each request.
            client: Optional preconfigured client (the adapter will close it).
        """
        self.token = token
        self.api_url = api_url
        self.query = query
        self.page_size = page_size
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def __aenter__(self) -> "GitHubTrendingAdapter":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client.

        Returns:
            httpx.AsyncClient configured with GitHub authentication.
        """
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"bearer {self.token}"
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout_seconds,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, after: str | None = None) -> FetchPage:
        """Fetch one page of search results.

        Args:
            after: endCursor of the previous page, or None for the first page.

        Returns:
            FetchPage of normalized repositories.

        Raises:
            FetchError: On transport failure, a non-200 response, GraphQL
                errors, or a response body that cannot be parsed.
        """
        client = await self._get_client()
        variables: dict[str, Any] = {
            "query": self.query,
            "first": self.page_size,
            "after": after,
        }

        try:
            response = await client.post(
                self.api_url,
                json={"query": SEARCH_REPOSITORIES_QUERY, "variables": variables},
            )
        except httpx.RequestError as e:
            logger.error(f"GitHub request failed: {e}", extra={"after": after})
            raise FetchError(f"GitHub request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                f"GitHub API returned status {response.status_code}",
                extra={"after": after, "response": response.text[:500]},
            )
            raise FetchError(f"GitHub API returned status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError("GitHub API returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise FetchError("GitHub API returned an unexpected payload")

        errors = payload.get("errors")
        if errors:
            messages = [
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            ]
            raise FetchError("; ".join(messages))

        page = self._parse_page(payload)
        logger.debug(
            f"Fetched {len(page.items)} repositories from GitHub "
            f"(after={after!r}, has_more={page.has_more})"
        )
        return page

    @staticmethod
    def _parse_page(payload: dict[str, Any]) -> FetchPage:
        """Normalize a search response into a FetchPage.

        Raises:
            FetchError: If the response lacks the search connection.
        """
        try:
            search = payload["data"]["search"]
            page_info = search["pageInfo"]
            nodes = search["nodes"]
        except (KeyError, TypeError) as e:
            raise FetchError(f"Malformed GitHub search response: missing {e}") from e

        if not isinstance(page_info, dict):
            raise FetchError("Malformed GitHub search response: pageInfo is not an object")
        if nodes is not None and not isinstance(nodes, list):
            raise FetchError("Malformed GitHub search response: nodes is not a list")

        items = []
        for node in nodes or []:
            # Non-repository search hits come back as empty objects.
            if not node:
                continue
            try:
                items.append(GitHubTrendingAdapter._parse_repository(node))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed repository node: {e}")

        return FetchPage(
            items=tuple(items),
            cursor=page_info.get("endCursor"),
            has_more=bool(page_info.get("hasNextPage", False)),
        )

    @staticmethod
    def _parse_repository(node: dict[str, Any]) -> Item:
        language = node.get("primaryLanguage") or {}
        return Item(
            name=node.get("nameWithOwner") or node["name"],
            description=node.get("description") or "",
            category=language.get("name") or "",
            url=node.get("url") or "",
            stars=int(node.get("stargazerCount") or 0),
        )
