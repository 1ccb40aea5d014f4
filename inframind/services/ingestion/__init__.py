"""Document ingestion pipeline for the InfraMind knowledge base.

Stages per item: **process -> chunk -> store -> embed -> index**.

1. **Process** (document_processor.py / source_processors/) -- uploads and
   connector payloads become a title plus plain text.
2. **Chunk** (chunker.py / TextChunker) -- sentence-packed passages with a
   word overlap carried from the previous passage.
3. **Store** (via IDocumentStore) -- the document gets its durable id.
4. **Embed** (via IEmbeddingProvider) -- passages embedded concurrently.
5. **Index** (via IVectorIndex) -- embedded passages inserted in order.

IngestionJobTracker runs these stages for every item of a job and keeps
the job's state machine current.
"""

from inframind.services.ingestion.chunker import TextChunker
from inframind.services.ingestion.document_processor import DocumentProcessor
from inframind.services.ingestion.job_tracker import IngestionJobTracker

__all__ = ["DocumentProcessor", "IngestionJobTracker", "TextChunker"]
