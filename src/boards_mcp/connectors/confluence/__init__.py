from boards_mcp.connectors.confluence.client import ContentConnector
from boards_mcp.connectors.confluence.models import ContentPage, SearchResult, SpaceRecord

__all__ = ["ContentConnector", "ContentPage", "SearchResult", "SpaceRecord"]
