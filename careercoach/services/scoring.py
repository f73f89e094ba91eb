from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from careercoach.errors import InvalidInput
from careercoach.schemas import (
	AssessmentRecord,
	AssessmentStats,
	DEFAULT_CATEGORY,
	DIFFICULTIES,
	DifficultyStats,
	GradedQuestion,
	QuizQuestion,
)


TREND_WINDOW = 3


def _percent(correct: int, total: int) -> float:
	if total == 0:
		return 0.0
	return 100.0 * correct / total


def grade(
	questions: Sequence[QuizQuestion],
	answers: Sequence[Optional[str]],
	time_spent: int = 0,
	*,
	user_id: str,
) -> AssessmentRecord:
	"""Grade one completed attempt against the exact question set presented.

	Answers are compared to `correctAnswer` with exact string equality. A
	missing answer counts as wrong.
	"""
	if not questions:
		raise InvalidInput("A quiz needs at least one question.")
	if time_spent is None or time_spent < 0:
		raise InvalidInput("Time spent must be zero or more seconds.")

	graded: List[GradedQuestion] = []
	totals: Dict[str, int] = {d: 0 for d in DIFFICULTIES}
	corrects: Dict[str, int] = {d: 0 for d in DIFFICULTIES}

	for index, q in enumerate(questions):
		user_answer = answers[index] if index < len(answers) else None
		is_correct = user_answer == q.correct_answer
		totals[q.difficulty] += 1
		if is_correct:
			corrects[q.difficulty] += 1
		graded.append(GradedQuestion(
			**q.model_dump(),
			user_answer=user_answer,
			is_correct=is_correct,
		))

	correct_count = sum(1 for g in graded if g.is_correct)
	breakdown = {
		d: DifficultyStats(total=totals[d], correct=corrects[d], score=_percent(corrects[d], totals[d]))
		for d in DIFFICULTIES
	}
	return AssessmentRecord(
		user_id=user_id,
		quiz_score=_percent(correct_count, len(graded)),
		questions=graded,
		category=DEFAULT_CATEGORY,
		time_spent=time_spent,
		difficulty_breakdown=breakdown,
		total_questions=len(graded),
		correct_answers=correct_count,
	)


def wrong_answers(record: AssessmentRecord) -> List[dict]:
	"""Missed questions in the shape the improvement-tip prompt expects."""
	return [
		{
			"question": q.question,
			"correctAnswer": q.correct_answer,
			"userAnswer": q.user_answer,
			"difficulty": q.difficulty or "medium",
		}
		for q in record.questions
		if not q.is_correct
	]


def reduced_record(record: AssessmentRecord) -> AssessmentRecord:
	"""Strip a graded record down to the fields every schema version accepts."""
	return AssessmentRecord(
		id=record.id,
		user_id=record.user_id,
		quiz_score=record.quiz_score,
		questions=[
			GradedQuestion(
				question=q.question,
				correct_answer=q.correct_answer,
				user_answer=q.user_answer,
				is_correct=q.is_correct,
				explanation=q.explanation,
			)
			for q in record.questions
		],
		category=record.category,
		improvement_tip=None,
		created_at=record.created_at,
	)


def _mean(values: Sequence[float]) -> float:
	return sum(values) / len(values)


def assessment_stats(records: Sequence[AssessmentRecord]) -> AssessmentStats:
	"""Aggregate a user's assessments, which must be ordered newest first."""
	if not records:
		return AssessmentStats()

	scores = [r.quiz_score for r in records]

	difficulty_breakdown = {d: 0 for d in DIFFICULTIES}
	category_breakdown: Dict[str, int] = {}
	for r in records:
		if r.difficulty_breakdown:
			for d in DIFFICULTIES:
				stats = r.difficulty_breakdown.get(d)
				if stats is not None:
					difficulty_breakdown[d] += stats.total
		for q in r.questions:
			category = q.category or DEFAULT_CATEGORY
			category_breakdown[category] = category_breakdown.get(category, 0) + 1

	trend = 0.0
	if len(scores) >= 2 * TREND_WINDOW:
		recent = scores[:TREND_WINDOW]
		previous = scores[TREND_WINDOW:2 * TREND_WINDOW]
		trend = _mean(recent) - _mean(previous)

	return AssessmentStats(
		total_quizzes=len(records),
		average_score=round(_mean(scores), 1),
		best_score=round(max(scores), 1),
		total_questions=sum(r.total_questions or 0 for r in records),
		difficulty_breakdown=difficulty_breakdown,
		category_breakdown=category_breakdown,
		improvement_trend=round(trend, 1),
	)
