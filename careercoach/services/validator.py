from __future__ import annotations

import enum
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from careercoach.errors import GenerationFailed
from careercoach.schemas import (
	IndustryInsights,
	QuizQuestion,
	QuizQuestionSet,
	TIME_ESTIMATES,
)
from careercoach.services import fallbacks


logger = logging.getLogger(__name__)


class Variant(str, enum.Enum):
	INDUSTRY_INSIGHTS = "industry-insights"
	QUIZ_QUESTION_SET = "quiz-question-set"
	IMPROVEMENT_TIP = "improvement-tip"
	IMPROVED_TEXT = "improved-text"
	COVER_LETTER = "cover-letter"


@dataclass(frozen=True)
class VariantSchema:
	model: Optional[Type[BaseModel]]  # None means free text
	fallback: Any = None


SCHEMAS = {
	Variant.INDUSTRY_INSIGHTS: VariantSchema(IndustryInsights, fallbacks.INDUSTRY_INSIGHTS_FALLBACK),
	Variant.QUIZ_QUESTION_SET: VariantSchema(QuizQuestionSet, fallbacks.QUIZ_FALLBACK),
	Variant.IMPROVEMENT_TIP: VariantSchema(None, fallbacks.IMPROVEMENT_TIP_FALLBACK),
	Variant.IMPROVED_TEXT: VariantSchema(None, fallbacks.IMPROVED_TEXT_FALLBACK),
	# A generic letter would mislead the user, so there is nothing to fall back to
	Variant.COVER_LETTER: VariantSchema(None, None),
}


@dataclass(frozen=True)
class Ok:
	value: Any
	ok: bool = True


@dataclass(frozen=True)
class Err:
	kind: str
	detail: str = ""
	ok: bool = False


Result = Union[Ok, Err]

_FENCE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)


def strip_fences(text: str) -> str:
	"""Remove markdown code-fence markers and surrounding whitespace."""
	return _FENCE.sub("", text or "").strip()


def _parse_json(text: str) -> Result:
	try:
		return Ok(json.loads(text))
	except json.JSONDecodeError as exc:
		first_error = str(exc)
	# Model wrapped the object in prose; try the outermost braces
	start, end = text.find("{"), text.rfind("}")
	if start != -1 and end > start:
		try:
			return Ok(json.loads(text[start:end + 1]))
		except json.JSONDecodeError:
			pass
	return Err("parse", first_error)


def _question_id(stamp: int, index: int) -> str:
	return f"q_{stamp}_{index}"


def finalize_questions(questions: list[QuizQuestion]) -> list[QuizQuestion]:
	"""Assign ids and time estimates to a freshly generated question list."""
	stamp = time.time_ns() // 1_000_000
	return [
		q.model_copy(update={
			"id": _question_id(stamp, index),
			"time_estimate": TIME_ESTIMATES[q.difficulty],
		})
		for index, q in enumerate(questions)
	]


def _validate_quiz(data: Any, default_difficulty: str) -> Result:
	if isinstance(data, list):
		data = {"questions": data}
	if not isinstance(data, dict) or not isinstance(data.get("questions"), list):
		return Err("schema", "missing questions array")

	valid: list[QuizQuestion] = []
	dropped = 0
	for raw in data["questions"]:
		if isinstance(raw, dict) and not raw.get("difficulty"):
			raw = {**raw, "difficulty": default_difficulty}
		try:
			valid.append(QuizQuestion.model_validate(raw))
		except ValidationError:
			dropped += 1
	if dropped:
		logger.warning("Discarded %d malformed quiz question(s)", dropped)
	try:
		quiz = QuizQuestionSet(questions=valid)
	except ValidationError as exc:
		return Err("schema", str(exc))
	return Ok(QuizQuestionSet(questions=finalize_questions(quiz.questions)))


def check(raw_text: str, variant: Variant, *, default_difficulty: str = "medium") -> Result:
	"""Strip, parse and validate model output. Never raises."""
	schema = SCHEMAS[variant]
	text = strip_fences(raw_text)
	if not text:
		return Err("empty", "model returned no content")

	if schema.model is None:
		if variant is Variant.IMPROVED_TEXT:
			# Single paragraph
			text = " ".join(text.split())
		return Ok(text)

	parsed = _parse_json(text)
	if not parsed.ok:
		return parsed

	if variant is Variant.QUIZ_QUESTION_SET:
		return _validate_quiz(parsed.value, default_difficulty)

	try:
		return Ok(schema.model.model_validate(parsed.value))
	except ValidationError as exc:
		return Err("schema", str(exc))


def _pinned_fallback_questions(difficulty: str) -> list[dict]:
	questions = fallbacks.QUIZ_FALLBACK["questions"]
	matching = [q for q in questions if q.get("difficulty") == difficulty]
	return matching or [{**q, "difficulty": difficulty} for q in questions]


def fallback_payload(variant: Variant, *, default_difficulty: str = "medium", pinned: bool = False) -> Any:
	"""Static substitute for `variant`.

	With `pinned`, a quiz fallback only carries questions at `default_difficulty`.
	"""
	schema = SCHEMAS[variant]
	if schema.fallback is None:
		raise GenerationFailed()
	if schema.model is None:
		return schema.fallback
	if variant is Variant.QUIZ_QUESTION_SET:
		data = {"questions": _pinned_fallback_questions(default_difficulty)} if pinned else schema.fallback
		return _validate_quiz(data, default_difficulty).value
	return schema.model.model_validate(schema.fallback)


def validate(
	raw_text: str,
	variant: Variant,
	*,
	fallback: Any = None,
	default_difficulty: str = "medium",
	pinned: bool = False,
) -> Any:
	"""Return a payload that satisfies `variant`'s schema.

	Output that fails to parse or validate is replaced by `fallback` when given,
	otherwise by the variant's static fallback. Variants without any fallback
	raise GenerationFailed. `pinned` limits a quiz fallback to `default_difficulty`.
	"""
	result = check(raw_text, variant, default_difficulty=default_difficulty)
	if result.ok:
		return result.value

	logger.warning("Model output rejected for %s (%s); using fallback", variant.value, result.kind)
	if fallback is not None:
		return fallback
	return fallback_payload(variant, default_difficulty=default_difficulty, pinned=pinned)
