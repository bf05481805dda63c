"""
LLM Service - Streaming interface to Google Gemini.

Provides the boundary between the conversation session and the hosted model:
construct a model with a fixed system instruction, then stream the reply to
a conversation history fragment by fragment.
"""
import time
from typing import AsyncIterator, List, Optional, Protocol

from loguru import logger
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..error_handling.exceptions import InitializationError, StreamError
from ..error_handling.logging_config import log_api_call


# Transient failures worth retrying while probing the service at startup
_TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.TooManyRequests,
)


class ChatService(Protocol):
    """Anything that can stream a model reply for a conversation history."""

    def stream_reply(self, contents: List[dict]) -> AsyncIterator[str]:
        ...


class GeminiChatService:
    """
    Gemini-backed chat service.

    Args:
        api_key: Gemini API key
        model_name: Model identifier, e.g. "gemini-1.5-flash"
        system_instruction: Opaque instruction describing business rules,
            pricing and tone. Passed through unchanged.
    """

    provider = "gemini"

    def __init__(self, api_key: str, model_name: str, system_instruction: str):
        if not api_key:
            raise InitializationError("Gemini API key is empty", provider=self.provider)

        try:
            genai.configure(api_key=api_key)
            self._model = genai.GenerativeModel(
                model_name=model_name,
                system_instruction=system_instruction,
            )
        except Exception as e:
            logger.error(f"Gemini model construction failed: {e}")
            raise InitializationError(
                f"Could not construct Gemini model {model_name}: {e}",
                provider=self.provider,
                original_error=e,
                model=model_name,
            ) from e

        self.model_name = model_name
        logger.info(f"Gemini chat service ready | model: {model_name}")

    def verify(self) -> None:
        """
        Check that the model exists and the credentials are accepted.

        Transient errors are retried; authentication and lookup errors are
        fatal.

        Raises:
            InitializationError: If the service cannot be reached or rejects the key
        """
        start_time = time.time()
        try:
            self._get_model()
        except Exception as e:
            log_api_call(self.provider, "get_model", False, time.time() - start_time,
                         {"model": self.model_name, "error": type(e).__name__})
            raise InitializationError(
                f"Gemini service check failed for {self.model_name}: {e}",
                provider=self.provider,
                original_error=e,
                model=self.model_name,
            ) from e

        log_api_call(self.provider, "get_model", True, time.time() - start_time,
                     {"model": self.model_name})

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    def _get_model(self):
        name = self.model_name if self.model_name.startswith("models/") else f"models/{self.model_name}"
        return genai.get_model(name)

    async def stream_reply(self, contents: List[dict]) -> AsyncIterator[str]:
        """
        Stream the model's reply to a conversation.

        Args:
            contents: Conversation history ending with the new user message,
                as [{"role": "user"|"model", "parts": [...]}, ...]

        Yields:
            Text fragments in arrival order

        Raises:
            StreamError: If the request fails or a chunk carries no text
        """
        start_time = time.time()
        fragments = 0

        try:
            response = await self._model.generate_content_async(contents, stream=True)
            async for chunk in response:
                text = _chunk_text(chunk)
                if text:
                    fragments += 1
                    yield text
        except StreamError:
            log_api_call(self.provider, "stream_reply", False, time.time() - start_time,
                         {"fragments": fragments})
            raise
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Gemini API call failed: {e}")
            log_api_call(self.provider, "stream_reply", False, time.time() - start_time,
                         {"fragments": fragments, "error": type(e).__name__})
            raise StreamError(
                f"Gemini API call failed: {str(e)}",
                provider=self.provider,
                original_error=e,
                fragments=fragments,
            ) from e
        except Exception as e:
            logger.error(f"Gemini stream failed: {e}")
            log_api_call(self.provider, "stream_reply", False, time.time() - start_time,
                         {"fragments": fragments, "error": type(e).__name__})
            raise StreamError(
                f"Gemini stream failed: {str(e)}",
                provider=self.provider,
                original_error=e,
                fragments=fragments,
            ) from e

        log_api_call(self.provider, "stream_reply", True, time.time() - start_time,
                     {"fragments": fragments, "model": self.model_name})


def _chunk_text(chunk) -> Optional[str]:
    """
    Extract the text of a streamed chunk.

    Gemini raises ValueError from ``.text`` when a candidate was blocked or
    carries no text part.
    """
    try:
        return chunk.text
    except ValueError as e:
        feedback = getattr(chunk, "prompt_feedback", None)
        raise StreamError(
            f"Gemini returned a chunk without text: {e}",
            error_type="blocked",
            original_error=e,
            feedback=str(feedback) if feedback else None,
        ) from e


def create_gemini_service(
    api_key: str,
    model_name: str,
    system_instruction: str,
    verify: bool = True,
) -> GeminiChatService:
    """
    Construct and optionally verify a Gemini chat service.

    Args:
        api_key: Gemini API key
        model_name: Model identifier
        system_instruction: System instruction payload
        verify: Check the service before returning

    Returns:
        Ready GeminiChatService

    Raises:
        InitializationError: If construction or verification fails
    """
    service = GeminiChatService(api_key, model_name, system_instruction)
    if verify:
        service.verify()
    return service
