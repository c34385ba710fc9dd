"""
Language model providers used for invoice extraction.

A provider only turns a prompt into raw text. Fence unwrapping, JSON
parsing and failure tagging happen in the extractor so every provider is
handled the same way.
"""

from abc import ABC, abstractmethod

import httpx
from loguru import logger

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class MalformedProviderResponse(Exception):
    """The provider answered 2xx but the envelope had no usable text"""


class LLMProvider(ABC):
    name: str = "LLM"

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Send one prompt and return the model's raw text answer.

        Raises:
            httpx.HTTPStatusError: non-2xx response
            httpx.HTTPError: timeouts and connection failures
            MalformedProviderResponse: response body without text
        """
        pass


class GeminiProvider(LLMProvider):
    """Google Gemini via the REST generateContent endpoint"""

    name = "Gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def generate(self, prompt: str) -> str:
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

        logger.info("Calling Gemini generateContent", model=self.model, prompt_chars=len(prompt))

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(
                self.endpoint,
                headers={"x-goog-api-key": self.api_key},
                json=payload,
            )
            r.raise_for_status()

            try:
                body = r.json()
            except ValueError as e:
                raise MalformedProviderResponse(f"Response body is not JSON: {r.text[:200]}") from e

        return self._response_text(body)

    @staticmethod
    def _response_text(body: dict) -> str:
        try:
            parts = body["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            block_reason = body.get("promptFeedback", {}).get("blockReason") if isinstance(body, dict) else None
            if block_reason:
                raise MalformedProviderResponse(f"Prompt was blocked: {block_reason}") from e
            raise MalformedProviderResponse("Response contained no candidates") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text:
            raise MalformedProviderResponse("Response candidate contained no text")
        return text
