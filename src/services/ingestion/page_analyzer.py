"""Vision-model text extraction for rendered document pages.

Each page image is sent to the injected :class:`ILLMProvider` with a fixed
instruction to extract and summarise the page in the target language.
Rate-limit responses are retried under a :class:`RetryPolicy`; every other
failure is terminal for the page, and so for the whole document.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.ingestion import RetryPolicy
from src.utils.errors import AnalysisFailedError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

_PROMPT_TEMPLATE = (
    "This image is one page of an uploaded document. "
    "Extract all of the text and information on the page, including tables, "
    "charts and diagrams, and summarise it in {language}. "
    "Preserve the original meaning, figures, names and terminology. "
    "Respond with the extracted content only, without commentary."
)


class PageAnalyzer:
    """Turns one page image into one text chunk.

    Parameters
    ----------
    llm:
        Vision-capable provider.  Must raise :class:`RateLimitError` on
        rate-limit responses so they can be told apart from other failures.
    policy:
        Retry bounds and backoff for rate limits.
    language:
        Language the extracted content is written in.
    max_output_tokens:
        Upper bound on the model's response per page.
    sleep:
        Awaitable used between retries; tests pass a recorder.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        policy: RetryPolicy | None = None,
        language: str = "Japanese",
        max_output_tokens: int = 2048,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._llm = llm
        self._policy = policy or RetryPolicy()
        self._prompt = _PROMPT_TEMPLATE.format(language=language)
        self._max_output_tokens = max_output_tokens
        self._sleep = sleep

    @property
    def prompt(self) -> str:
        return self._prompt

    async def analyze(self, image_path: Path) -> str:
        """Return the extracted text for the page at *image_path*.

        Raises
        ------
        AnalysisFailedError
            With ``rate_limited=True`` once the retries are exhausted, or
            ``rate_limited=False`` for any other provider failure.
        """
        image_bytes = await asyncio.to_thread(Path(image_path).read_bytes)
        page = Path(image_path).name

        previous_delay = 0.0
        retry_number = 0
        while True:
            try:
                text = await self._llm.vision_extract(
                    image_bytes,
                    self._prompt,
                    max_tokens=self._max_output_tokens,
                )
            except RateLimitError as exc:
                if retry_number >= self._policy.max_retries:
                    logger.error(
                        "page_analysis_rate_limit_exhausted",
                        page=page,
                        attempts=retry_number + 1,
                    )
                    raise AnalysisFailedError(
                        message=(
                            f"Rate limit persisted after {retry_number + 1} attempts "
                            f"analysing {page}"
                        ),
                        provider_name=self._llm.get_provider_name(),
                        rate_limited=True,
                    ) from exc

                delay = self._policy.delay_for(retry_number, exc.retry_after, previous_delay)
                logger.warning(
                    "page_analysis_rate_limited",
                    page=page,
                    retry=retry_number + 1,
                    delay_seconds=delay,
                    retry_after=exc.retry_after,
                )
                await self._sleep(delay)
                previous_delay = delay
                retry_number += 1
            except Exception as exc:
                logger.error("page_analysis_failed", page=page, error=str(exc))
                raise AnalysisFailedError(
                    message=f"Analysis failed for {page}: {exc}",
                    provider_name=self._llm.get_provider_name(),
                ) from exc
            else:
                logger.debug(
                    "page_analyzed",
                    page=page,
                    retries=retry_number,
                    output_chars=len(text),
                )
                return text
