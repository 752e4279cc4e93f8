from ecoshield.tools.dealers import DealerFinder, SearchResult, build_dealer_query, parse_search_results
from ecoshield.tools.search import SearchTool, build_search_tool

__all__ = [
    "DealerFinder",
    "SearchResult",
    "SearchTool",
    "build_dealer_query",
    "build_search_tool",
    "parse_search_results",
]
