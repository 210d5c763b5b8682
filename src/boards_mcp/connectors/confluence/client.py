from __future__ import annotations

import logging
from typing import Any, Sequence
from urllib.parse import quote

from boards_config.settings import ConfluenceSettings
from boards_mcp.connectors.confluence.models import BodyValue, ContentPage, PageBody, SearchResult, SpaceRecord
from boards_mcp.connectors.markup import strip_html
from boards_mcp.core_infrastructure.http_client import HttpClient, HttpClientConfig, basic_auth_header


logger = logging.getLogger(__name__)

DEFAULT_EXPAND = ("body.view", "version", "space")
DEFAULT_LIMIT = 25
TIMEOUT_S = 30.0

AUTH_HINT = (
    "Authentication failed. Check your CONFLUENCE_URL, CONFLUENCE_USER, "
    "and CONFLUENCE_API_TOKEN environment variables."
)


def _storage_body(content: str) -> dict:
    # Content is expected in storage format already and is sent as-is.
    return {"storage": {"value": content, "representation": "storage"}}


class ContentConnector:
    """CRUD and CQL search over Confluence pages and spaces."""

    def __init__(self, settings: ConfluenceSettings, *, http: HttpClient | None = None) -> None:
        self.settings = settings
        self._base = f"{settings.base_url}/wiki/rest/api"
        self._http = http or HttpClient(
            config=HttpClientConfig(
                service="Confluence",
                auth_hint=AUTH_HINT,
                timeout=TIMEOUT_S,
                headers={
                    "Authorization": basic_auth_header(settings.user, settings.api_token),
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "ContentConnector":
        return cls(ConfluenceSettings.from_env(), **kwargs)

    def _url(self, path: str) -> str:
        return f"{self._base}{path}"

    def _content_url(self, page_id: str) -> str:
        return self._url(f"/content/{quote(str(page_id), safe='')}")

    async def get_page(self, page_id: str, expand: Sequence[str] | None = None) -> ContentPage:
        """Fetch a page for display.

        Whatever was expanded, the returned body holds only the view
        representation, with markup stripped.
        """
        raw = await self._http.arequest_json(
            "GET",
            self._content_url(page_id),
            params={"expand": ",".join(expand or DEFAULT_EXPAND)},
        )
        page = ContentPage.model_validate(raw)
        view = ((raw.get("body") or {}).get("view") or {}).get("value") or ""
        page.body = PageBody(view=BodyValue(value=strip_html(view), representation="view"))
        return page

    async def search(self, cql: str, limit: int = DEFAULT_LIMIT) -> SearchResult:
        raw = await self._http.arequest_json("GET", self._url("/content/search"), params={"cql": cql, "limit": limit})
        return SearchResult.model_validate(raw)

    async def list_spaces(self, limit: int = DEFAULT_LIMIT) -> list[SpaceRecord]:
        raw = await self._http.arequest_json("GET", self._url("/space"), params={"limit": limit})
        return [SpaceRecord.model_validate(s) for s in (raw or {}).get("results") or []]

    async def create_page(
        self,
        space_key: str,
        title: str,
        content: str,
        parent_id: str | None = None,
    ) -> ContentPage:
        data: dict[str, Any] = {
            "type": "page",
            "title": title,
            "space": {"key": space_key},
            "body": _storage_body(content),
        }
        if parent_id:
            data["ancestors"] = [{"id": parent_id}]

        logger.info("Creating page %r in space %s", title, space_key)
        raw = await self._http.arequest_json("POST", self._url("/content"), json=data)
        return ContentPage.model_validate(raw)

    async def update_page(self, page_id: str, title: str, content: str) -> ContentPage:
        """Replace title and body, bumping the version read just before the write.

        A concurrent edit between the read and the write makes Confluence reject
        the stale version (409); that error is raised as-is, never retried.
        """
        current = await self._http.arequest_json(
            "GET",
            self._content_url(page_id),
            params={"expand": "version,space"},
        )
        next_version = int(current["version"]["number"]) + 1

        data = {
            "id": page_id,
            "type": "page",
            "title": title,
            "space": {"key": current["space"]["key"]},
            "body": _storage_body(content),
            "version": {"number": next_version},
        }
        logger.info("Updating page %s to version %s", page_id, next_version)
        raw = await self._http.arequest_json("PUT", self._content_url(page_id), json=data)
        return ContentPage.model_validate(raw)

    def close(self) -> None:
        self._http.close()
