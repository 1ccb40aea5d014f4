"""Source processor for repository files handed over by the GitHub connector.

Payload shape: ``{"repository": "owner/name", "path": "docs/api.md",
"content": "...", "repo_url": "https://github.com/owner/name",
"branch": "main"}`` (``repo_url`` and ``branch`` optional).  The document
title is ``<repository>/<path>`` and markdown syntax is stripped.
"""

from __future__ import annotations

import re
from typing import Any

from inframind.models.document import ProcessedDocument
from inframind.services.ingestion.source_processors.markup import clean_markdown
from inframind.utils.errors import ItemProcessingError

_REPO_FROM_URL = re.compile(r"github\.com/([^/]+/[^/]+)")


def repo_name_from_url(repo_url: str | None) -> str:
    """Extract ``owner/name`` from a GitHub URL, or ``"unknown-repo"``."""
    if not repo_url:
        return "unknown-repo"
    match = _REPO_FROM_URL.search(repo_url)
    return match.group(1).removesuffix(".git") if match else "unknown-repo"


class GitHubProcessor:
    def process(self, payload: dict[str, Any]) -> ProcessedDocument:
        path = payload.get("path")
        content = payload.get("content")
        if not path or not isinstance(content, str):
            raise ItemProcessingError(message="GitHub payload needs 'path' and text 'content'")

        repo_url = payload.get("repo_url")
        repository = payload.get("repository") or repo_name_from_url(repo_url)
        branch = payload.get("branch") or "main"
        source_url = f"{repo_url.rstrip('/')}/blob/{branch}/{path}" if repo_url else None

        return ProcessedDocument(
            title=f"{repository}/{path}",
            content=clean_markdown(content),
            source_url=source_url,
            metadata={
                "fileType": "github",
                "repository": repository,
                "filename": path,
                "size": len(content),
            },
        )
