"""Routes ingestion items to the matching source processor.

Uploaded files are dispatched on their extension; connector payloads on
their ``source_type``.  Every failure surfaces as
:class:`~inframind.utils.errors.ItemProcessingError` so the job tracker can
record it against the item and continue with the batch.
"""

from __future__ import annotations

import structlog

from inframind.models.document import ConnectorPayload, IngestionItem, ProcessedDocument, UploadedFile
from inframind.services.ingestion.source_processors import (
    ConfluenceProcessor,
    FileProcessor,
    GitHubProcessor,
    JiraProcessor,
    SlackProcessor,
)
from inframind.utils.errors import ItemProcessingError

logger = structlog.get_logger(logger_name=__name__)


class DocumentProcessor:
    """Single entry point from an ingestion item to a :class:`ProcessedDocument`."""

    def __init__(self) -> None:
        self._jira = JiraProcessor()
        self._files = FileProcessor(jira=self._jira)
        self._github = GitHubProcessor()
        self._confluence = ConfluenceProcessor()
        self._slack = SlackProcessor()

    def process(self, item: IngestionItem) -> ProcessedDocument:
        """Convert *item* into a processed document.

        Raises
        ------
        ItemProcessingError
            If the format is unsupported or the content cannot be parsed.
        """
        if isinstance(item, UploadedFile):
            processed = self._files.process(item)
        elif isinstance(item, ConnectorPayload):
            processed = self._process_connector(item)
        else:
            raise ItemProcessingError(message=f"Unsupported item type: {type(item).__name__}")

        logger.debug(
            "document_processed",
            item=item.name,
            title=processed.title,
            chars=len(processed.content),
        )
        return processed

    def _process_connector(self, item: ConnectorPayload) -> ProcessedDocument:
        base_url = item.metadata.get("base_url")
        source_type = item.source_type.lower()

        if source_type == "github":
            processed = self._github.process(item.payload)
        elif source_type == "confluence":
            processed = self._confluence.process(item.payload, base_url=base_url)
        elif source_type == "jira":
            processed = self._jira.process_issue(item.payload, base_url=base_url)
        elif source_type == "slack":
            processed = self._slack.process(item.payload)
        else:
            raise ItemProcessingError(message=f"Unsupported source type: {item.source_type}")

        update: dict = {"metadata": {**processed.metadata, **item.metadata}}
        if item.source_url:
            update["source_url"] = item.source_url
        return processed.model_copy(update=update)
