# =============================================================================
# src/cli/ingest.py -- CLI Ingest Command (document store management)
# =============================================================================
#
# Standalone CLI for the chatdocs document store: the ChromaDB collection
# of text chunks the chat assistant retrieves from when answering questions
# about uploaded files.
#
# Supported subcommands:
#
#   file    -- Ingest a local file (PDF, PPTX, PPT, DOCX, TXT, CSV, XLS, XLSX)
#   delete  -- Delete every stored chunk of a document by filename
#   query   -- Print the chunks most relevant to a question, optionally
#              within one document (--filename)
#   show    -- Print every stored chunk of one document in order
#
# The same IngestionService the web app uses does the work, so a file
# ingested here is indistinguishable from one uploaded through the chat UI.
#
# Usage examples:
#   python -m src.cli.ingest file /path/to/report.pdf --session cli
#   python -m src.cli.ingest file notes.dat --mimetype text/plain
#   python -m src.cli.ingest delete report.pdf
#   python -m src.cli.ingest query "What was Q3 revenue?" --top-k 3
#   python -m src.cli.ingest show report.pdf
# =============================================================================

"""Standalone CLI for managing the chatdocs document store.

Usage::

    python -m src.cli.ingest file /path/to/report.pdf

    python -m src.cli.ingest delete report.pdf

    python -m src.cli.ingest query "What was Q3 revenue?" --top-k 3

    python -m src.cli.ingest query "Q3 revenue?" --filename report.pdf

    python -m src.cli.ingest show report.pdf

Exit codes: 0 on success, 1 on an ingestion or configuration error,
2 on bad arguments (argparse).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from src.config.loader import load_settings
from src.models.ingestion import UploadedFile
from src.utils.errors import ChatDocsError
from src.utils.logging import configure_logging


async def _handle_file(args: argparse.Namespace, service) -> int:  # noqa: ANN001
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    upload = UploadedFile.from_path(path, mimetype=args.mimetype)
    print(f"Ingesting {upload.filename} ({upload.mimetype}, {upload.size} bytes)")

    result = await service.ingest(upload, session_id=args.session)

    print(f"  Chunks stored:  {result.chunk_count}")
    if result.page_count:
        print(f"  Pages analysed: {result.page_count}")
    print(f"  Archive link:   {result.filelink or '(none)'}")
    print(f"  Elapsed:        {result.elapsed_seconds:.1f}s")
    return 0


async def _handle_delete(args: argparse.Namespace, service) -> int:  # noqa: ANN001
    deleted = await service.delete_document(args.filename)
    if deleted == 0:
        print(f"No chunks found for '{args.filename}'. Nothing to delete.")
    else:
        print(f"Deleted {deleted} chunks of '{args.filename}'.")
    return 0


async def _handle_query(args: argparse.Namespace, service) -> int:  # noqa: ANN001
    chunks = await service.query(args.text, top_k=args.top_k, filename=args.filename)
    if not chunks:
        print("No relevant chunks found.")
        return 0
    for rank, chunk in enumerate(chunks, start=1):
        print(f"[{rank}] {chunk}")
        print("-" * 40)
    return 0


async def _handle_show(args: argparse.Namespace, service) -> int:  # noqa: ANN001
    chunks = await service.get_document_chunks(args.filename)
    if not chunks:
        print(f"No chunks found for '{args.filename}'.")
        return 1
    print(f"{args.filename}: {len(chunks)} chunks")
    for index, chunk in enumerate(chunks):
        print(f"[{index}] {chunk}")
        print("-" * 40)
    return 0


_HANDLERS = {
    "file": _handle_file,
    "delete": _handle_delete,
    "query": _handle_query,
    "show": _handle_show,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Manage the chatdocs document store",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="YAML config file (default: config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    file_parser = subparsers.add_parser("file", help="Ingest a local document")
    file_parser.add_argument("path", help="Path to the document")
    file_parser.add_argument(
        "--mimetype",
        default=None,
        help="Declared mimetype (guessed from the extension if omitted)",
    )
    file_parser.add_argument("--session", default=None, help="Chat session id to record")

    delete_parser = subparsers.add_parser("delete", help="Delete a document's chunks")
    delete_parser.add_argument("filename", help="Filename the document was ingested under")

    query_parser = subparsers.add_parser("query", help="Show chunks relevant to a query")
    query_parser.add_argument("text", help="Query text")
    query_parser.add_argument("--top-k", type=int, default=None, help="Number of chunks")
    query_parser.add_argument(
        "--filename",
        default=None,
        help="Only search chunks of this document",
    )

    show_parser = subparsers.add_parser("show", help="Print every stored chunk of a document")
    show_parser.add_argument("filename", help="Filename the document was ingested under")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, build the service and run one subcommand."""
    args = _build_parser().parse_args(argv)

    try:
        app_settings = load_settings(args.config)
        configure_logging(app_settings.log_level)

        # Deferred: building the service pulls in chromadb and openai.
        from src.main import build_ingestion_service

        service = build_ingestion_service(app_settings)
        exit_code = asyncio.run(_HANDLERS[args.command](args, service))
    except ChatDocsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
