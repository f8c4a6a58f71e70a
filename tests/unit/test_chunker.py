"""Unit tests for the TextChunker -- boundary-aware overlapping character chunks."""

from __future__ import annotations

import pytest

from src.services.ingestion.chunker import TextChunker

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_chunker(chunk_size: int = 500, overlap: int = 80) -> TextChunker:
    """Build a TextChunker with a predictable configuration."""
    return TextChunker(chunk_size=chunk_size, overlap=overlap)


def _english_text(sentences: int = 120) -> str:
    return " ".join(f"Sentence number {i} talks about quarterly results." for i in range(sentences))


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestEmptyInput:
    def test_empty_string_returns_no_chunks(self) -> None:
        assert _make_chunker().chunk("") == []

    def test_whitespace_only_returns_no_chunks(self) -> None:
        assert _make_chunker().chunk("  \n\n \t ") == []


class TestShortText:
    def test_short_text_is_one_chunk(self) -> None:
        chunks = _make_chunker().chunk("Hello world. This is short.")
        assert chunks == ["Hello world. This is short."]

    def test_surrounding_whitespace_is_stripped(self) -> None:
        chunks = _make_chunker().chunk("\n\n  Hello world.  \n")
        assert chunks == ["Hello world."]


class TestSegmentSplitting:
    def test_segments_reassemble_to_input(self) -> None:
        text = "First line\nSecond line.\n\nNew paragraph! Question? 日本語の文。次の文！"
        segments = TextChunker.split_segments(text)
        assert "".join(segments) == text

    def test_japanese_and_paragraph_markers(self) -> None:
        segments = TextChunker.split_segments("今日は晴れ。明日は雨！\n\nEnd.")
        assert segments == ["今日は晴れ。", "明日は雨！\n\n", "End."]

    def test_line_breaks_are_boundaries(self) -> None:
        segments = TextChunker.split_segments("alpha\nbeta\ngamma")
        assert segments == ["alpha\n", "beta\n", "gamma"]


class TestOverlapAndBounds:
    """Every chunk after the first starts with the previous chunk's last 80 chars."""

    def test_multiple_chunks_produced(self) -> None:
        chunks = _make_chunker().chunk(_english_text())
        assert len(chunks) > 3

    def test_overlap_with_previous_chunk(self) -> None:
        chunks = _make_chunker().chunk(_english_text())
        for previous, current in zip(chunks, chunks[1:]):
            assert current.startswith(previous[-80:])

    def test_no_chunk_exceeds_chunk_size(self) -> None:
        chunks = _make_chunker().chunk(_english_text())
        assert all(len(chunk) <= 500 for chunk in chunks)

    def test_chunks_do_not_end_mid_sentence(self) -> None:
        chunks = _make_chunker().chunk(_english_text())
        assert all(chunk.endswith(".") for chunk in chunks)

    def test_every_sentence_is_kept(self) -> None:
        text = _english_text(60)
        joined = "".join(_make_chunker().chunk(text))
        for i in range(60):
            assert f"Sentence number {i} talks" in joined

    def test_japanese_text(self) -> None:
        text = "".join(f"これは{i}番目のテスト文です。" for i in range(150))
        chunks = _make_chunker().chunk(text)

        assert len(chunks) > 1
        assert all(len(chunk) <= 500 for chunk in chunks)
        for previous, current in zip(chunks, chunks[1:]):
            assert current.startswith(previous[-80:])

    def test_custom_size_and_overlap(self) -> None:
        chunks = _make_chunker(chunk_size=120, overlap=20).chunk(_english_text(20))
        assert all(len(chunk) <= 120 for chunk in chunks)
        for previous, current in zip(chunks, chunks[1:]):
            assert current.startswith(previous[-20:])


class TestLongSegments:
    """Segments that cannot fit next to the overlap are cut, never dropped."""

    @staticmethod
    def _reassemble(chunks: list[str], overlap: int = 80) -> str:
        text = chunks[0]
        for previous, current in zip(chunks, chunks[1:]):
            text += current[len(previous[-overlap:]) :]
        return text

    def test_segments_within_size_never_produce_oversized_chunks(self) -> None:
        first = "a" * 300 + "."
        second = "b" * 449 + "."
        chunks = _make_chunker().chunk(first + second)

        assert all(len(chunk) <= 500 for chunk in chunks)
        for previous, current in zip(chunks, chunks[1:]):
            assert current.startswith(previous[-80:])
        assert self._reassemble(chunks) == first + second

    def test_segment_longer_than_chunk_size_is_kept_in_order(self) -> None:
        long_segment = "x" * 700
        text = f"Intro sentence. {long_segment} Outro sentence."
        chunks = _make_chunker().chunk(text)

        assert all(len(chunk) <= 500 for chunk in chunks)
        assert self._reassemble(chunks) == text
        assert chunks[-1].endswith("Outro sentence.")

    def test_mixed_text_stays_bounded(self) -> None:
        text = _english_text(20) + " " + "y" * 600 + ". " + _english_text(20)
        chunks = _make_chunker().chunk(text)

        assert all(len(chunk) <= 500 for chunk in chunks)
        assert self._reassemble(chunks) == text


class TestValidation:
    def test_overlap_must_be_smaller_than_chunk_size(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=100, overlap=100)

    def test_chunk_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=0, overlap=0)

    def test_properties(self) -> None:
        chunker = _make_chunker(chunk_size=300, overlap=50)
        assert chunker.chunk_size == 300
        assert chunker.overlap == 50
