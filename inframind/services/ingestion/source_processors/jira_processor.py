"""Source processor for Jira issues.

Renders an issue (as returned by the Jira REST API or found in a JSON
export) into a plain-text summary: key, summary, status, priority, type,
description, resolution and change history.  Used both for ``.json``
uploads and for issues handed over by the Jira connector.
"""

from __future__ import annotations

from typing import Any

from inframind.models.document import ProcessedDocument
from inframind.utils.errors import ItemProcessingError


def is_jira_issue(data: Any) -> bool:
    return isinstance(data, dict) and "key" in data and isinstance(data.get("fields"), dict)


def is_jira_export(data: Any) -> bool:
    return isinstance(data, dict) and isinstance(data.get("issues"), list)


def format_jira_issue(issue: dict[str, Any]) -> str:
    """Render one issue as labelled plain-text lines."""
    fields = issue.get("fields") or {}

    def _name(field: str) -> str:
        value = fields.get(field)
        if isinstance(value, dict):
            return value.get("name") or "N/A"
        return "N/A"

    lines = [
        f"Issue: {issue.get('key', 'N/A')}",
        f"Summary: {fields.get('summary') or 'N/A'}",
        f"Status: {_name('status')}",
        f"Priority: {_name('priority')}",
        f"Issue Type: {_name('issuetype')}",
    ]

    if fields.get("description"):
        lines += ["", "Description:", str(fields["description"])]

    resolution = fields.get("resolution")
    if isinstance(resolution, dict):
        lines += ["", f"Resolution: {resolution.get('name', 'N/A')}"]
        if resolution.get("description"):
            lines.append(f"Resolution Description: {resolution['description']}")

    histories = (issue.get("changelog") or {}).get("histories") or []
    if histories:
        lines += ["", "History:"]
        for history in histories:
            changes = ", ".join(
                f'{item.get("field")} changed from "{item.get("fromString")}" '
                f'to "{item.get("toString")}"'
                for item in history.get("items") or []
            )
            lines.append(f"- {history.get('created')}: {changes}")

    return "\n".join(lines) + "\n"


class JiraProcessor:
    """Turns Jira issue payloads into documents."""

    def process_issue(
        self,
        issue: dict[str, Any],
        base_url: str | None = None,
    ) -> ProcessedDocument:
        if not is_jira_issue(issue):
            raise ItemProcessingError(message="Jira payload is missing 'key' or 'fields'")
        key = issue["key"]
        summary = issue["fields"].get("summary") or "Jira Issue"
        return ProcessedDocument(
            title=f"{key}: {summary}",
            content=format_jira_issue(issue),
            source_url=f"{base_url.rstrip('/')}/browse/{key}" if base_url else None,
            metadata={"fileType": "jira", "issueKey": key},
        )

    def process_export(self, export: dict[str, Any]) -> ProcessedDocument:
        issues = [i for i in export.get("issues", []) if isinstance(i, dict)]
        return ProcessedDocument(
            title="Jira Issues Export",
            content="\n\n".join(format_jira_issue(i) for i in issues),
            metadata={"fileType": "jira", "issueCount": len(issues)},
        )
