from __future__ import annotations

import asyncio
import enum
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import anyio
import groq
from google.ai import generativelanguage as glm
from google.api_core import exceptions as google_exceptions
from tenacity import (
	AsyncRetrying,
	retry_if_result,
	stop_after_attempt,
	wait_exponential,
)

from careercoach.config import settings


logger = logging.getLogger(__name__)


class FailureKind(str, enum.Enum):
	INVALID_CREDENTIAL = "invalid-credential"
	QUOTA_EXCEEDED = "quota-exceeded"
	TRANSIENT = "transient"
	VALIDATION = "validation"
	OTHER = "other"


# Retrying cannot fix these
NON_RETRYABLE = frozenset({FailureKind.INVALID_CREDENTIAL, FailureKind.VALIDATION})


@dataclass(frozen=True)
class ModelResponse:
	ok: bool
	text: str = ""
	failure: Optional[FailureKind] = None
	detail: str = ""

	@classmethod
	def success(cls, text: str) -> "ModelResponse":
		return cls(ok=True, text=text)

	@classmethod
	def failed(cls, kind: FailureKind, detail: str = "") -> "ModelResponse":
		return cls(ok=False, failure=kind, detail=detail)

	@property
	def retryable(self) -> bool:
		return not self.ok and self.failure not in NON_RETRYABLE


_INVALID_KEY_MARKERS = ("api key not valid", "api_key_invalid", "invalid api key", "unauthorized", "unauthenticated", "permission denied")
_QUOTA_MARKERS = ("quota", "rate limit", "resource exhausted", "too many requests", "429")
_TRANSIENT_MARKERS = ("timeout", "timed out", "temporarily", "unavailable", "connection", "503", "502", "500")


def classify_failure(exc: BaseException) -> FailureKind:
	"""Map a provider exception onto the failure taxonomy."""
	if isinstance(exc, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)):
		return FailureKind.INVALID_CREDENTIAL
	if isinstance(exc, google_exceptions.ResourceExhausted):
		return FailureKind.QUOTA_EXCEEDED
	if isinstance(exc, (google_exceptions.ServiceUnavailable, google_exceptions.DeadlineExceeded, google_exceptions.InternalServerError)):
		return FailureKind.TRANSIENT
	if isinstance(exc, (groq.AuthenticationError, groq.PermissionDeniedError)):
		return FailureKind.INVALID_CREDENTIAL
	if isinstance(exc, groq.RateLimitError):
		return FailureKind.QUOTA_EXCEEDED
	if isinstance(exc, (groq.APIConnectionError, groq.InternalServerError)):
		return FailureKind.TRANSIENT
	if isinstance(exc, (TimeoutError, ConnectionError)):
		return FailureKind.TRANSIENT

	message = str(exc).lower()
	if any(m in message for m in _INVALID_KEY_MARKERS):
		return FailureKind.INVALID_CREDENTIAL
	if any(m in message for m in _QUOTA_MARKERS):
		return FailureKind.QUOTA_EXCEEDED
	if any(m in message for m in _TRANSIENT_MARKERS):
		return FailureKind.TRANSIENT
	return FailureKind.OTHER


class LLMService:
	"""Single-shot access to the generative text model.

	The credential is passed on every call; no client outlives a call.
	"""

	def __init__(self, provider: Optional[str] = None, model: Optional[str] = None) -> None:
		self._provider = (provider or settings.llm_provider or "gemini").lower()
		if model:
			self._model = model
		elif self._provider == "groq":
			self._model = settings.groq_model
		else:
			self._model = settings.gemini_model

	@property
	def provider(self) -> str:
		return self._provider

	def _complete_gemini(self, credential: str, prompt: str) -> str:
		client = glm.GenerativeServiceClient(client_options={"api_key": credential})
		model = self._model if self._model.startswith("models/") else f"models/{self._model}"
		resp = client.generate_content(
			request=glm.GenerateContentRequest(
				model=model,
				contents=[glm.Content(role="user", parts=[glm.Part(text=prompt)])],
				generation_config=glm.GenerationConfig(temperature=settings.answer_temperature),
			)
		)
		if not resp.candidates:
			return ""
		return "".join(part.text for part in resp.candidates[0].content.parts)

	def _complete_groq(self, credential: str, prompt: str) -> str:
		client = groq.Groq(api_key=credential)
		resp = client.chat.completions.create(
			model=self._model,
			messages=[{"role": "user", "content": prompt}],
			temperature=settings.answer_temperature,
			max_tokens=settings.groq_max_tokens,
		)
		return resp.choices[0].message.content or ""

	async def invoke(self, credential: str, prompt: str) -> ModelResponse:
		"""Make exactly one model call; failures come back classified, never raised."""
		if not credential:
			return ModelResponse.failed(FailureKind.INVALID_CREDENTIAL, "no credential supplied")

		if self._provider == "groq":
			call = functools.partial(self._complete_groq, credential, prompt)
		elif self._provider == "gemini":
			call = functools.partial(self._complete_gemini, credential, prompt)
		else:
			return ModelResponse.failed(FailureKind.OTHER, f"unknown provider {self._provider!r}")

		try:
			text = await anyio.to_thread.run_sync(call)
		except Exception as exc:
			kind = classify_failure(exc)
			logger.warning("Model call failed (%s): %s", kind.value, type(exc).__name__)
			return ModelResponse.failed(kind, str(exc))
		return ModelResponse.success((text or "").strip())


def _result_is_retryable(result: Any) -> bool:
	return isinstance(result, ModelResponse) and result.retryable


def _log_retry(retry_state) -> None:
	cause = retry_state.outcome.result().failure.value
	delay = retry_state.next_action.sleep if retry_state.next_action else 0
	logger.info("AI call failed (%s), retrying in %.2fs (attempt %d)", cause, delay, retry_state.attempt_number)


def with_retry(
	max_attempts: int = 4,
	base_delay: float = 1.0,
	sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
):
	"""Retry an async model call with exponential backoff.

	Delays are ``base_delay * 2**n`` for n = 0, 1, 2, ... Failures classified as
	invalid-credential or validation are returned after the first attempt. Once
	`max_attempts` is reached, the caller gets the last failed ModelResponse.
	Wrapped calls report failures as results; an exception is not retried and
	reaches the caller unchanged.
	"""

	def decorator(fn: Callable[..., Awaitable[Any]]):
		@functools.wraps(fn)
		async def wrapper(*args, **kwargs):
			retrying = AsyncRetrying(
				retry=retry_if_result(_result_is_retryable),
				stop=stop_after_attempt(max_attempts),
				wait=wait_exponential(multiplier=base_delay, exp_base=2),
				before_sleep=_log_retry,
				retry_error_callback=lambda state: state.outcome.result(),
				sleep=sleep,
			)
			return await retrying(fn, *args, **kwargs)

		return wrapper

	return decorator


llm_service = LLMService()
