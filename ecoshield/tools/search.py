from __future__ import annotations

from typing import Any, Protocol

from langchain_community.tools import DuckDuckGoSearchResults

from config.settings import Settings


class SearchTool(Protocol):
    """Anything with a LangChain-style ``invoke(query)``."""

    def invoke(self, input: str, **kwargs: Any) -> Any: ...


def build_search_tool(settings: Settings) -> DuckDuckGoSearchResults:
    """DuckDuckGo results as a JSON-encoded list of {title, link, snippet}."""
    return DuckDuckGoSearchResults(
        max_results=settings.search_max_results,
        output_format="json",
    )
