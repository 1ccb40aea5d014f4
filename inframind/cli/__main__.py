"""Allow ``python -m inframind.cli`` execution."""

from inframind.cli.ingest import main

main()
