from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from config.settings import Settings
from ecoshield.core.memory import ChatMessage, SessionLog
from ecoshield.core.prompt import IMAGE_ANALYSIS_PROMPT, IMAGE_PLACEHOLDER, TEXT_ANALYSIS_PROMPT
from ecoshield.core.storage import JsonFileStore, KeyValueStore
from ecoshield.core.validation import ImageValidationError, validate_image_data_uri


logger = logging.getLogger(__name__)

IMAGE_FALLBACK_ERROR = "Error analyzing image. Please try again."
TEXT_FALLBACK_ERROR = "Error analyzing text. Please try again."


class EmptyPromptError(ValueError):
    def __init__(self) -> None:
        super().__init__("Prompt is empty")


class GenerativeModel(Protocol):
    def generate(self, prompt: str, image: Optional[str] = None) -> str: ...


def _message_text(content: Any) -> str:
    """Flatten LangChain message content (str or list of parts) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text") or "")
    return "".join(parts)


class GeminiModel:
    """Send a prompt, optionally with an inline image, to a chat model."""

    def __init__(self, chat_model: BaseChatModel) -> None:
        self.chat_model = chat_model

    def generate(self, prompt: str, image: Optional[str] = None) -> str:
        content: list = [{"type": "text", "text": prompt}]
        if image:
            content.append({"type": "image_url", "image_url": image})
        result = self.chat_model.invoke([HumanMessage(content=content)])
        text = _message_text(result.content).strip()
        if not text:
            raise RuntimeError("Model returned an empty response")
        return text


def build_model(settings: Settings) -> GeminiModel:
    if not settings.google_api_key:
        raise RuntimeError(
            "GOOGLE_API_KEY not set. Please configure it in environment or .env"
        )

    llm = ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.google_api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
    )
    return GeminiModel(llm)


class Analyzer:
    """Run one analysis call and record the exchange on success.

    ``run_*`` methods raise on any failure and are for callers that branch on
    the outcome. ``analyze_*`` methods return text for display: the model's
    answer, or a readable error message. Nothing is recorded for a failed call.
    """

    def __init__(self, model: GenerativeModel, session_log: SessionLog) -> None:
        self.model = model
        self.session_log = session_log

    def run_image(self, image_data: str) -> str:
        mime_type, _ = validate_image_data_uri(image_data)
        logger.info("Analyzing image: mime=%s chars=%s", mime_type, len(image_data))
        response_text = self.model.generate(IMAGE_ANALYSIS_PROMPT, image=image_data)
        self.session_log.record_exchange(
            ChatMessage(role="user", content=IMAGE_PLACEHOLDER, image_data=image_data),
            ChatMessage(role="assistant", content=response_text),
        )
        return response_text

    def run_prompt(self, prompt: str) -> str:
        if not prompt or not prompt.strip():
            raise EmptyPromptError()
        logger.info("Analyzing prompt: chars=%s", len(prompt))
        response_text = self.model.generate(TEXT_ANALYSIS_PROMPT.format(description=prompt))
        self.session_log.record_exchange(
            ChatMessage(role="user", content=prompt),
            ChatMessage(role="assistant", content=response_text),
        )
        return response_text

    def analyze_image(self, image_data: str) -> str:
        try:
            return self.run_image(image_data)
        except ImageValidationError as exc:
            logger.warning("Rejected image before analysis: %s", exc)
            return error_text(exc, IMAGE_FALLBACK_ERROR)
        except Exception as exc:
            logger.exception("Error analyzing image: %s", exc)
            return error_text(exc, IMAGE_FALLBACK_ERROR)

    def analyze_prompt(self, prompt: str) -> str:
        try:
            return self.run_prompt(prompt)
        except EmptyPromptError as exc:
            logger.warning("Rejected prompt before analysis: %s", exc)
            return error_text(exc, TEXT_FALLBACK_ERROR)
        except Exception as exc:
            logger.exception("Error analyzing prompt: %s", exc)
            return error_text(exc, TEXT_FALLBACK_ERROR)


def error_text(exc: Exception, fallback: str) -> str:
    message = " ".join(str(exc).split())
    if not message:
        return fallback
    return f"Error: {message}. Please try again."


def build_session_log(settings: Settings, store: Optional[KeyValueStore] = None) -> SessionLog:
    return SessionLog(store or JsonFileStore(Path(settings.data_dir)))


def build_analyzer(
    settings: Settings,
    store: Optional[KeyValueStore] = None,
    model: Optional[GenerativeModel] = None,
) -> Analyzer:
    return Analyzer(model or build_model(settings), build_session_log(settings, store))
