"""Source processor for Slack conversation exports.

Payload shape: ``{"channel": "incidents", "thread_ts": "...",
"messages": [{"user": "alice", "text": "...", "ts": "1718000000.0001"}]}``.
Messages become ``[<timestamp>] <user>: <text>`` lines in posting order.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from inframind.models.document import ProcessedDocument
from inframind.utils.errors import ItemProcessingError


def _format_ts(ts: Any) -> str:
    try:
        return datetime.fromtimestamp(float(ts), tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
    except (TypeError, ValueError):
        return str(ts) if ts else "unknown time"


def _ts_key(ts: Any) -> float:
    try:
        return float(ts)
    except (TypeError, ValueError):
        return 0.0


class SlackProcessor:
    def process(self, payload: dict[str, Any]) -> ProcessedDocument:
        messages = payload.get("messages")
        if not isinstance(messages, list):
            raise ItemProcessingError(message="Slack payload needs a 'messages' list")

        channel = payload.get("channel") or "unknown-channel"
        ordered = sorted(
            (m for m in messages if isinstance(m, dict) and m.get("text")),
            key=lambda m: _ts_key(m.get("ts")),
        )
        lines = [
            f"[{_format_ts(m.get('ts'))}] {m.get('user') or 'unknown'}: {m['text']}"
            for m in ordered
        ]
        participants = sorted({m.get("user") for m in ordered if m.get("user")})

        return ProcessedDocument(
            title=payload.get("title") or f"#{channel} conversation",
            content="\n".join(lines),
            metadata={
                "fileType": "slack",
                "channel": channel,
                "messageCount": len(lines),
                "participants": participants,
            },
        )
