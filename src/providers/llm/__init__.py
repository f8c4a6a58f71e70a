"""LLM provider adapters.

One concrete implementation of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenAILLMProvider -- gpt-4o vision (also any OpenAI-compatible gateway)

main.py builds it from Settings and injects it into the PageAnalyzer.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
