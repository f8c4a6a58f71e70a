"""Plain-text chunking with sentence boundaries and a fixed character overlap.

Splits decoded text into chunks of at most ``chunk_size`` characters
(default 500) for embedding.

The strategy has two goals:

1. **Boundary-preserving** -- Text is first cut into sentence-like segments
   after paragraph breaks, line breaks, and Japanese (``。！？``) or Western
   (``.!?``) terminators.  Segments are packed greedily, so a chunk only
   ends mid-sentence when the sentence itself is too long to fit.

2. **Overlapping windows** -- Every chunk after the first begins with the
   last ``overlap`` characters (default 80) of the previous chunk, so a
   fact that straddles a boundary is retrievable from either side.

No chunk exceeds ``chunk_size``.  A segment longer than
``chunk_size - overlap`` is cut into pieces of that length before packing;
the pieces stay in order and nothing is dropped.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

# Longest markers first so "\n\n" wins over "\n".
_SEGMENT_BOUNDARY = re.compile(r"(?<=\n\n)|(?<=\n)(?!\n)|(?<=[。！？.!?])(?![。！？.!?\n])")


class TextChunker:
    """Packs text segments into overlapping chunks bounded by character count.

    Parameters
    ----------
    chunk_size:
        Target maximum characters per chunk (default 500).
    overlap:
        Characters carried from the tail of one chunk into the next
        (default 80).  Must be smaller than ``chunk_size``.
    """

    def __init__(self, chunk_size: int = 500, overlap: int = 80) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= overlap < chunk_size:
            raise ValueError("overlap must be in [0, chunk_size)")
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[str]:
        """Split *text* into overlapping chunks.

        Returns an empty list for empty or whitespace-only input.
        """
        text = text.strip()
        if not text:
            return []

        chunks = self._pack(self.split_segments(text))
        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            input_chars=len(text),
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return chunks

    @staticmethod
    def split_segments(text: str) -> list[str]:
        """Cut *text* after every boundary marker, keeping the markers.

        Concatenating the returned segments reproduces *text* exactly.
        """
        return [segment for segment in _SEGMENT_BOUNDARY.split(text) if segment]

    # ------------------------------------------------------------------
    # Chunk accumulation
    # ------------------------------------------------------------------

    def _pack(self, segments: list[str]) -> list[str]:
        chunks: list[str] = []
        current = ""
        # Length of the overlap prefix carried into ``current``.
        carried = 0

        for piece in self._bounded_pieces(segments):
            has_new_content = len(current) > carried
            if has_new_content and len(current) + len(piece) > self._chunk_size:
                chunks.append(current)
                tail = current[-self._overlap :] if self._overlap else ""
                current = tail
                carried = len(tail)
            current += piece

        if len(current) > carried and current.strip():
            chunks.append(current)
        return chunks

    def _bounded_pieces(self, segments: list[str]) -> list[str]:
        """Cut segments longer than ``chunk_size - overlap`` at character boundaries.

        Overlap plus one piece then always fits in ``chunk_size``.
        """
        limit = self._chunk_size - self._overlap
        pieces: list[str] = []
        for segment in segments:
            if len(segment) <= limit:
                pieces.append(segment)
                continue
            logger.debug("long_segment_split", segment_chars=len(segment), limit=limit)
            pieces.extend(segment[start : start + limit] for start in range(0, len(segment), limit))
        return pieces
