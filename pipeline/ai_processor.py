"""Gemini client for question solving and study planning."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

import google.ai.generativelanguage as glm
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from tenacity import (
    AsyncRetrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"

# Bad keys and bad requests fail the same way on every attempt
NON_RETRYABLE = (
    google_exceptions.InvalidArgument,
    google_exceptions.PermissionDenied,
    google_exceptions.Unauthenticated,
    google_exceptions.NotFound,
)


class AIGatewayError(Exception):
    """The generative model call failed."""


class GeminiProcessor:
    """Thin async wrapper around a Gemini model, keyed per caller."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        max_retries: int = 3,
    ):
        self.api_key = api_key
        self.model_name = model or DEFAULT_MODEL
        self.max_retries = max(1, max_retries)

    @property
    def client_options(self) -> Dict[str, str]:
        # Clients are built per caller; genai.configure would set a process-wide key
        return {"api_key": self.api_key}

    async def generate(self, parts: Union[str, List[Any]]) -> str:
        """Send a prompt (text, or text plus image parts) and return the text reply."""
        try:
            model = genai.GenerativeModel(self.model_name)
            # The SDK only falls back to the global default client when unset
            model._async_client = glm.GenerativeServiceAsyncClient(
                client_options=self.client_options
            )

            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_not_exception_type(NON_RETRYABLE),
                reraise=True,
            ):
                with attempt:
                    response = await model.generate_content_async(parts)
                    return response.text
        except Exception as e:
            logger.error(f"Gemini call to {self.model_name} failed: {e}")
            raise AIGatewayError(str(e) or "AI error") from e

    async def generate_with_image(
        self,
        prompt: str,
        image: bytes,
        mime_type: str = "image/webp",
    ) -> str:
        """Send a prompt together with one inline image."""
        return await self.generate([prompt, {"mime_type": mime_type, "data": image}])

    async def list_models(self) -> List[Dict[str, str]]:
        """Models that support content generation, sorted by id."""
        try:
            client = glm.ModelServiceClient(client_options=self.client_options)
            models = await asyncio.to_thread(lambda: list(genai.list_models(client=client)))
        except Exception as e:
            logger.error(f"Listing Gemini models failed: {e}")
            raise AIGatewayError(str(e) or "Could not list models") from e

        result = []
        for model in models:
            if "generateContent" not in (model.supported_generation_methods or []):
                continue
            result.append({
                "id": (model.name or "").replace("models/", ""),
                "name": model.display_name or model.name or "",
                "description": model.description or "",
            })

        result.sort(key=lambda m: m["id"])
        return result
