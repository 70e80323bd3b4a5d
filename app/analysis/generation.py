"""
Optional text generation capability used for assisted recommendations.

A provider answers two questions: can it be used right now (``try_load``),
and what does it say for a prompt (``generate``). ``try_load`` never raises;
``generate`` raises GenerationError on any failure and the caller falls back
to rule-based text.
"""

import logging
from typing import Optional, Protocol, runtime_checkable

from openai import AsyncOpenAI, OpenAIError

from app.core.config import Settings
from app.core.exceptions import GenerationError

logger = logging.getLogger(__name__)

ADVISOR_SYSTEM_PROMPT = (
    "You are a personal finance advisor. Give concise, specific and "
    "actionable advice based only on the figures provided."
)


@runtime_checkable
class GenerationProvider(Protocol):
    name: str

    async def try_load(self) -> bool:
        ...

    async def generate(self, prompt: str, max_length: int, temperature: float) -> str:
        ...


class NullGenerationProvider:
    """Provider used when no generation backend is configured; never available."""

    name = "none"

    async def try_load(self) -> bool:
        return False

    async def generate(self, prompt: str, max_length: int, temperature: float) -> str:
        raise GenerationError("No text generation backend configured", provider=self.name)


class OpenAIGenerationProvider:
    """Generation backed by the OpenAI chat completions API."""

    name = "openai"

    def __init__(self, api_key: Optional[str], model: str):
        self.api_key = api_key
        self.model = model
        self._client: Optional[AsyncOpenAI] = None
        self._loaded: Optional[bool] = None

    async def try_load(self) -> bool:
        if self._loaded is not None:
            return self._loaded

        if not self.api_key:
            logger.info("OpenAI API key not configured. Using rule-based recommendations.")
            self._loaded = False
            return False

        try:
            self._client = AsyncOpenAI(api_key=self.api_key)
            self._loaded = True
        except Exception as e:
            logger.warning(f"Failed to initialise OpenAI client: {e}")
            self._client = None
            self._loaded = False
        return self._loaded

    async def generate(self, prompt: str, max_length: int, temperature: float) -> str:
        if not self._client:
            raise GenerationError("OpenAI client is not loaded", provider=self.name)

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": ADVISOR_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_length,
                temperature=temperature,
            )
        except OpenAIError as e:
            raise GenerationError(
                "OpenAI completion request failed", provider=self.name, api_error=str(e)
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise GenerationError("Empty response from OpenAI", provider=self.name)
        return content.strip()


def build_generation_provider(settings: Settings) -> GenerationProvider:
    provider = settings.GENERATION_PROVIDER.strip().lower()
    if provider == "openai":
        return OpenAIGenerationProvider(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
        )
    if provider not in ("", "none"):
        logger.warning(f"Unknown GENERATION_PROVIDER '{settings.GENERATION_PROVIDER}', generation disabled")
    return NullGenerationProvider()
