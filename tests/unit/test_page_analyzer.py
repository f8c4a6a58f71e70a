"""Unit tests for the PageAnalyzer and its rate-limit RetryPolicy."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.models.ingestion import RetryPolicy
from src.services.ingestion.page_analyzer import PageAnalyzer
from src.utils.errors import AnalysisFailedError, LLMError, RateLimitError
from tests.conftest import FakeVisionLLM, RecordingSleep


def _page(tmp_path: Path, content: bytes = b"page-1") -> Path:
    path = tmp_path / "page-01.png"
    path.write_bytes(content)
    return path


def _rate_limit(retry_after: float | None = None) -> RateLimitError:
    return RateLimitError(message="slow down", provider_name="fake", retry_after=retry_after)


# ======================================================================
# RetryPolicy
# ======================================================================


class TestRetryPolicy:
    def test_exponential_without_hint(self) -> None:
        policy = RetryPolicy(base_delay=2.0, max_delay=60.0)
        assert [policy.delay_for(n) for n in range(4)] == [2.0, 4.0, 8.0, 16.0]

    def test_server_hint_wins(self) -> None:
        policy = RetryPolicy(base_delay=2.0)
        assert policy.delay_for(0, retry_after=7.5) == 7.5

    def test_never_decreases(self) -> None:
        policy = RetryPolicy(base_delay=2.0)
        assert policy.delay_for(1, retry_after=0.5, previous_delay=10.0) == 10.0

    def test_capped_at_max_delay(self) -> None:
        policy = RetryPolicy(base_delay=2.0, max_delay=5.0)
        assert policy.delay_for(6) == 5.0
        assert policy.delay_for(0, retry_after=120.0) == 5.0

    def test_zero_hint_is_ignored(self) -> None:
        policy = RetryPolicy(base_delay=2.0)
        assert policy.delay_for(1, retry_after=0.0) == 4.0

    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.base_delay == 2.0
        assert policy.max_delay == 60.0


# ======================================================================
# PageAnalyzer
# ======================================================================


class TestPageAnalyzer:
    @pytest.mark.asyncio
    async def test_returns_extracted_text(self, tmp_path: Path) -> None:
        llm = FakeVisionLLM()
        analyzer = PageAnalyzer(llm=llm, sleep=RecordingSleep())

        text = await analyzer.analyze(_page(tmp_path))

        assert text == "Extracted page-1"
        assert llm.calls == [b"page-1"]

    @pytest.mark.asyncio
    async def test_prompt_names_target_language(self, tmp_path: Path) -> None:
        llm = FakeVisionLLM()
        analyzer = PageAnalyzer(llm=llm, language="English", sleep=RecordingSleep())

        await analyzer.analyze(_page(tmp_path))

        assert "English" in llm.prompts[0]
        assert analyzer.prompt == llm.prompts[0]

    def test_default_language_is_japanese(self) -> None:
        analyzer = PageAnalyzer(llm=FakeVisionLLM())
        assert "Japanese" in analyzer.prompt

    @pytest.mark.asyncio
    async def test_three_rate_limits_then_success(self, tmp_path: Path) -> None:
        llm = FakeVisionLLM(script=[_rate_limit(), _rate_limit(), _rate_limit(), "done"])
        sleep = RecordingSleep()
        analyzer = PageAnalyzer(llm=llm, policy=RetryPolicy(max_retries=3), sleep=sleep)

        text = await analyzer.analyze(_page(tmp_path))

        assert text == "done"
        assert len(llm.calls) == 4
        assert len(sleep.delays) == 3
        assert sleep.delays == sorted(sleep.delays)
        assert sleep.delays == [2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_four_rate_limits_fail_as_rate_limited(self, tmp_path: Path) -> None:
        llm = FakeVisionLLM(script=[_rate_limit() for _ in range(4)])
        sleep = RecordingSleep()
        analyzer = PageAnalyzer(llm=llm, policy=RetryPolicy(max_retries=3), sleep=sleep)

        with pytest.raises(AnalysisFailedError) as exc_info:
            await analyzer.analyze(_page(tmp_path))

        assert exc_info.value.rate_limited is True
        assert isinstance(exc_info.value.__cause__, RateLimitError)
        assert len(llm.calls) == 4
        assert len(sleep.delays) == 3

    @pytest.mark.asyncio
    async def test_server_retry_after_is_honoured(self, tmp_path: Path) -> None:
        llm = FakeVisionLLM(script=[_rate_limit(retry_after=5.0), _rate_limit(retry_after=1.0)])
        sleep = RecordingSleep()
        analyzer = PageAnalyzer(llm=llm, sleep=sleep)

        await analyzer.analyze(_page(tmp_path))

        # The second hint is shorter than the first wait, so the wait holds.
        assert sleep.delays == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_other_error_fails_immediately(self, tmp_path: Path) -> None:
        llm = FakeVisionLLM(script=[LLMError(message="bad request", provider_name="fake")])
        sleep = RecordingSleep()
        analyzer = PageAnalyzer(llm=llm, sleep=sleep)

        with pytest.raises(AnalysisFailedError) as exc_info:
            await analyzer.analyze(_page(tmp_path))

        assert exc_info.value.rate_limited is False
        assert len(llm.calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_zero_retries_policy(self, tmp_path: Path) -> None:
        llm = FakeVisionLLM(script=[_rate_limit()])
        sleep = RecordingSleep()
        analyzer = PageAnalyzer(llm=llm, policy=RetryPolicy(max_retries=0), sleep=sleep)

        with pytest.raises(AnalysisFailedError) as exc_info:
            await analyzer.analyze(_page(tmp_path))

        assert exc_info.value.rate_limited is True
        assert sleep.delays == []
