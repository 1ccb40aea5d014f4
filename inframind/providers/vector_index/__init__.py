"""Vector index implementations.

InMemoryVectorIndex is an append-only arena of chunks searched by linear
cosine scan.  Any other backend (ANN library, hosted vector DB) only needs
to implement IVectorIndex with the same ordering guarantees.
"""

from inframind.providers.vector_index.memory_vector_index import InMemoryVectorIndex

__all__ = ["InMemoryVectorIndex"]
