"""Source processor for Confluence pages.

Accepts a page as returned by the Confluence REST API with
``expand=body.storage,version,space``.  The storage-format body (or the
rendered view body when storage is absent) is stripped to plain text.
"""

from __future__ import annotations

from typing import Any

from inframind.models.document import ProcessedDocument
from inframind.services.ingestion.source_processors.markup import strip_html
from inframind.utils.errors import ItemProcessingError


def _body_value(page: dict[str, Any], representation: str) -> str:
    body = page.get("body") or {}
    return (body.get(representation) or {}).get("value") or ""


class ConfluenceProcessor:
    def process(self, page: dict[str, Any], base_url: str | None = None) -> ProcessedDocument:
        if not page.get("title"):
            raise ItemProcessingError(message="Confluence page has no title")

        storage = _body_value(page, "storage")
        markup = storage or _body_value(page, "view")
        version = page.get("version") or {}
        page_id = page.get("id")

        source_url = None
        if base_url and page_id:
            source_url = f"{base_url.rstrip('/')}/pages/viewpage.action?pageId={page_id}"

        return ProcessedDocument(
            title=page["title"],
            content=strip_html(markup),
            source_url=source_url,
            metadata={
                "fileType": "confluence",
                "pageId": page_id,
                "spaceKey": (page.get("space") or {}).get("key"),
                "author": (version.get("by") or {}).get("displayName"),
                "lastModified": version.get("when"),
                "size": len(storage),
            },
        )
