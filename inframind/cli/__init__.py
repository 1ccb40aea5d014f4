"""Command-line tools for InfraMind.

- ``python -m inframind.cli ingest <paths...>``  ingest files or directories
- ``python -m inframind.cli query "<question>"`` ask the knowledge base
- ``python -m inframind.cli status``             show index / store statistics

The CLI builds its components with the same ``_build_all`` wiring as the
API server.
"""
