# =============================================================================
# src/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line tools for operators who need to manage the document store
# outside the chat UI: ingesting a file from disk, removing a document, or
# checking what retrieval returns for a question.
#
# Architecture Notes:
#   - argparse only (not Click/Typer), matching the rest of the project.
#   - Heavy imports (chromadb, openai) are deferred until a command runs so
#     ``--help`` stays fast.
# =============================================================================

"""CLI tools for chatdocs.

- ``python -m src.cli.ingest`` -- ingest, delete and query documents in the
  vector store.
"""
