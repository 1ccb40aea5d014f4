"""InfraMind: retrieval-augmented question answering over engineering knowledge."""

__version__ = "0.1.0"
