"""Vector store provider implementations.

ChromaDB is the sole chunk store.  Data persists at CHROMADB_PERSIST_DIR
(default: ./data/chromadb).  To swap it for another vector database,
implement IVectorStoreProvider and register the new class in main.py.
"""

from src.providers.vector_store.chromadb_provider import ChromaDBProvider

__all__ = ["ChromaDBProvider"]
