"""Source processor for uploaded files.

Dispatches on the file extension:

- ``md`` / ``markdown`` -- title from the first ``# `` heading (else the
  file stem), body with markdown syntax stripped
- ``txt``               -- title from the file stem, body verbatim
- ``json``              -- Jira issue, Jira export, or generic JSON
  pretty-printed with two-space indentation

Any other extension raises :class:`ItemProcessingError` with
``Unsupported file type: <ext>``.
"""

from __future__ import annotations

import json
from typing import Any

from inframind.models.document import ProcessedDocument, UploadedFile
from inframind.services.ingestion.source_processors.jira_processor import (
    JiraProcessor,
    is_jira_export,
    is_jira_issue,
)
from inframind.services.ingestion.source_processors.markup import (
    clean_markdown,
    file_extension,
    file_stem,
    first_heading,
)
from inframind.utils.errors import ItemProcessingError

SUPPORTED_EXTENSIONS = frozenset({"md", "markdown", "txt", "json"})


class FileProcessor:
    """Converts an :class:`UploadedFile` into a :class:`ProcessedDocument`."""

    def __init__(self, jira: JiraProcessor | None = None) -> None:
        self._jira = jira or JiraProcessor()

    def process(self, upload: UploadedFile) -> ProcessedDocument:
        extension = file_extension(upload.filename)
        if extension not in SUPPORTED_EXTENSIONS:
            raise ItemProcessingError(message=f"Unsupported file type: {extension}")

        text = _decode(upload)
        if extension in ("md", "markdown"):
            processed = self._process_markdown(upload.filename, text)
        elif extension == "txt":
            processed = ProcessedDocument(
                title=file_stem(upload.filename),
                content=text,
                metadata={"fileType": "text", "size": len(text)},
            )
        else:
            processed = self._process_json(upload.filename, text)

        if upload.metadata:
            processed = processed.model_copy(
                update={"metadata": {**processed.metadata, **upload.metadata}}
            )
        return processed

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _process_markdown(filename: str, text: str) -> ProcessedDocument:
        return ProcessedDocument(
            title=first_heading(text) or file_stem(filename),
            content=clean_markdown(text),
            metadata={"fileType": "markdown", "size": len(text)},
        )

    def _process_json(self, filename: str, text: str) -> ProcessedDocument:
        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ItemProcessingError(message=f"Invalid JSON: {exc.msg} (line {exc.lineno})") from exc

        if is_jira_issue(data):
            base = self._jira.process_issue(data)
        elif is_jira_export(data):
            base = self._jira.process_export(data)
        else:
            base = ProcessedDocument(
                title=file_stem(filename),
                content=json.dumps(data, indent=2),
            )

        return base.model_copy(
            update={
                "metadata": {
                    **base.metadata,
                    "fileType": "json",
                    "size": len(text),
                    "originalStructure": "array" if isinstance(data, list) else "object",
                }
            }
        )


def _decode(upload: UploadedFile) -> str:
    try:
        return upload.content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ItemProcessingError(message=f"File is not valid UTF-8 text: {exc.reason}") from exc
