"""Source processors for the InfraMind ingestion pipeline.

Each processor turns one source format into a
:class:`~inframind.models.document.ProcessedDocument` (title, plain-text
content, optional URL, metadata), which the job tracker then stores,
chunks, embeds and indexes.

Available processors and their inputs:

- **FileProcessor**        -- uploaded ``.md`` / ``.markdown`` / ``.txt`` / ``.json`` files
- **JiraProcessor**        -- Jira issues and JSON exports
- **GitHubProcessor**      -- repository files from the GitHub connector
- **ConfluenceProcessor**  -- Confluence pages (storage-format HTML)
- **SlackProcessor**       -- Slack channel / thread message exports
"""

from inframind.services.ingestion.source_processors.confluence_processor import (
    ConfluenceProcessor,
)
from inframind.services.ingestion.source_processors.file_processor import FileProcessor
from inframind.services.ingestion.source_processors.github_processor import GitHubProcessor
from inframind.services.ingestion.source_processors.jira_processor import JiraProcessor
from inframind.services.ingestion.source_processors.slack_processor import SlackProcessor

__all__ = [
    "ConfluenceProcessor",
    "FileProcessor",
    "GitHubProcessor",
    "JiraProcessor",
    "SlackProcessor",
]
