"""
DuckDuckGo web search tool (free, no API key).
"""

from typing import Any, Dict, List, Optional

from ddgs import DDGS
from ddgs.exceptions import DDGSException
from pydantic_ai.tools import Tool

from chatblocks.constants import WEB_TOOL_SECURITY_NOTICE
from chatblocks.logger import UnifiedLogger
from chatblocks.settings import get_default_api_timeout
from chatblocks.settings.store import get_general_setting_value
from .base import BaseTool, ToolScope


logger = UnifiedLogger(tag="web-search-duckduckgo-tool")

TOOL_NAME = "search_web_duckduckgo"
DEFAULT_MAX_RESULTS = 3


def format_results(query: str, results: List[Dict[str, Any]]) -> str:
    """Render DDGS text results as markdown the model can cite."""
    if not results:
        return f"No search results found for: {query}"

    entries = [
        f"**{result.get('title', '(untitled)')}**\n{result.get('body', '')}\nURL: {result.get('href', '')}"
        for result in results
    ]
    return f"Search results for '{query}':\n\n" + "\n\n---\n\n".join(entries)


class WebSearchDuckDuckGo(BaseTool):
    """Web search through DuckDuckGo."""

    @classmethod
    def get_tool(cls, scope: Optional[ToolScope] = None):
        max_results = int(get_general_setting_value("web_search_max_results", DEFAULT_MAX_RESULTS))

        def search_web(query: str) -> str:
            """Search the web for the query.

            Args:
                query: What to look up

            Returns:
                Matching pages with title, snippet and URL
            """
            logger.debug("tool_invoked", tool="web_search_duckduckgo", max_results=max_results)
            try:
                client = DDGS(timeout=int(get_default_api_timeout()))
                results = client.text(query, max_results=max_results, region="us-en", safesearch="moderate")
            except DDGSException as exc:
                logger.warning("DuckDuckGo search failed", error=str(exc))
                return f"DuckDuckGo search error: {exc}"
            return format_results(query, results or [])

        return Tool(search_web, name=TOOL_NAME)

    @classmethod
    def get_instructions(cls) -> str:
        return (
            f"Web search using DuckDuckGo: use for current information the vault does not hold. "
            f"Example: {TOOL_NAME}(query=\"latest postgres release notes\"). Always use named parameters."
        ) + WEB_TOOL_SECURITY_NOTICE
