# cvperfecto/services/gemini_service.py
import asyncio
import logging
from typing import Any, List, Optional, Sequence

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from cvperfecto.config import Settings, get_settings
from cvperfecto.exceptions import (
    AIServiceNotConfiguredError,
    AllModelsFailedError,
    ModelNotFoundError,
    ResumeProcessingError,
)

logger = logging.getLogger(__name__)

_gemini_client = None


def get_gemini_client(settings: Optional[Settings] = None):
    """Get the Gemini client, initializing lazily if needed."""
    global _gemini_client
    if _gemini_client is None:
        settings = settings or get_settings()
        if not settings.gemini_api_key:
            raise AIServiceNotConfiguredError("GEMINI_API_KEY is not set")
        _gemini_client = genai.Client(api_key=settings.gemini_api_key)
        logger.info("Gemini client initialized")
    return _gemini_client


def is_model_not_found(error: BaseException) -> bool:
    return isinstance(error, genai_errors.ClientError) and (
        error.code == 404 or getattr(error, "status", None) == "NOT_FOUND"
    )


def join_text_parts(content: Any) -> str:
    """
    Flatten message content. Plain strings pass through; a list of parts
    keeps only the text parts, concatenated in order.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    chunks: List[str] = []
    for part in content:
        if isinstance(part, dict):
            if part.get("type") == "text" and part.get("text"):
                chunks.append(part["text"])
            continue
        text = getattr(part, "text", None)
        if text and not getattr(part, "thought", False):
            chunks.append(text)
    return "".join(chunks)


def response_content(response: Any) -> Any:
    """Parts of the first candidate, or None when the model sent nothing."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    if content is None:
        return None
    return content.parts


class GeminiChatService:
    """
    Sends a system + user prompt to the first available model of a fixed,
    ordered list. Each model is tried once; only a missing model moves on
    to the next candidate.
    """

    def __init__(
        self,
        client: Any,
        models: Sequence[str],
        max_output_tokens: int = 4000,
        temperature: float = 0.1,
        top_p: float = 0.8,
        frequency_penalty: float = 0.1,
    ):
        if not models:
            raise ValueError("At least one model name is required")
        self.client = client
        self.models = list(models)
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.frequency_penalty = frequency_penalty

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GeminiChatService":
        settings = settings or get_settings()
        return cls(
            client=get_gemini_client(settings),
            models=settings.get_gemini_models(),
            max_output_tokens=settings.gemini_max_output_tokens,
            temperature=settings.gemini_temperature,
            top_p=settings.gemini_top_p,
            frequency_penalty=settings.gemini_frequency_penalty,
        )

    def _config(self, system_prompt: str) -> genai_types.GenerateContentConfig:
        return genai_types.GenerateContentConfig(
            system_instruction=system_prompt,
            max_output_tokens=self.max_output_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
            frequency_penalty=self.frequency_penalty,
        )

    async def generate(self, model_name: str, system_prompt: str, user_prompt: str) -> str:
        try:
            response = await asyncio.to_thread(
                self.client.models.generate_content,
                model=model_name,
                contents=user_prompt,
                config=self._config(system_prompt),
            )
        except genai_errors.ClientError as e:
            if is_model_not_found(e):
                raise ModelNotFoundError(model_name, str(e)) from e
            raise

        text = join_text_parts(response_content(response))
        if not text.strip():
            raise ResumeProcessingError("No content received from AI model")
        return text

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        last_error: Optional[BaseException] = None
        for model_name in self.models:
            try:
                logger.info("Trying model: %s", model_name)
                text = await self.generate(model_name, system_prompt, user_prompt)
                logger.info("Successfully used model: %s", model_name)
                return text
            except ModelNotFoundError as e:
                logger.warning("Model %s is not available: %s", model_name, e)
                last_error = e
        raise AllModelsFailedError(last_error)
