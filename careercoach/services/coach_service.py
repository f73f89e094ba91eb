from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from careercoach.config import settings
from careercoach.errors import (
	CoachError,
	DecryptionError,
	GenerationFailed,
	InvalidCredential,
	InvalidInput,
	MissingCredential,
	PersistenceFailure,
	ProfileIncomplete,
	ServiceBusy,
	Unauthorized,
	UserNotFound,
)
from careercoach.schemas import (
	AssessmentRecord,
	AssessmentStats,
	CoverLetterRecord,
	IndustryInsightRecord,
	IndustryInsights,
	QuizQuestion,
	UserRecord,
)
from careercoach.services import prompts
from careercoach.services.credentials import CredentialMode, CredentialResolver
from careercoach.services.llm_service import FailureKind, ModelResponse, llm_service, with_retry
from careercoach.services.scoring import assessment_stats, grade, reduced_record, wrong_answers
from careercoach.services.store import JsonStore, RecordNotFound, StoreError, Transaction, UniqueViolation, store
from careercoach.services.validator import Variant, check, fallback_payload, validate
from careercoach.utils.audit import auditor
from careercoach.utils.crypto import mask_credential


logger = logging.getLogger(__name__)


class CoachService:
	"""Entry points behind every AI-backed feature.

	Personal flows (quizzes, tips, cover letters) run on the user's own stored
	credential and fail with MissingCredential when there is none. Industry
	insights, the public content improver and the demo quiz use the shared
	service credential.
	"""

	def __init__(
		self,
		store: JsonStore,
		invoker: Any = None,
		resolver: Optional[CredentialResolver] = None,
		*,
		sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
		clock: Optional[Callable[[], datetime]] = None,
	) -> None:
		self._store = store
		self._invoker = invoker or llm_service
		self._resolver = resolver or CredentialResolver(store, shared_credential=settings.shared_credential)
		self._call_model = with_retry(
			max_attempts=settings.retry_max_attempts,
			base_delay=settings.retry_base_delay,
			sleep=sleep,
		)(self._invoker.invoke)
		self._now = clock or (lambda: datetime.now(timezone.utc))

	@property
	def resolver(self) -> CredentialResolver:
		return self._resolver

	# ------------------------------------------------------------------
	# Shared helpers
	# ------------------------------------------------------------------
	async def ensure_user(self, user_id: str, name: Optional[str] = None, email: Optional[str] = None) -> UserRecord:
		try:
			return await self._store.ensure_user(user_id, name=name, email=email)
		except StoreError as exc:
			logger.error("Provisioning user %s failed: %s", user_id, exc)
			raise PersistenceFailure()

	async def _require_user(self, user_id: Optional[str]) -> UserRecord:
		if not user_id:
			raise Unauthorized()
		user = await self._store.find_user_by_id(user_id)
		if user is None:
			raise UserNotFound()
		return user

	@staticmethod
	def _raise_for_failure(response: ModelResponse, personal: bool = True) -> None:
		kind = response.failure
		logger.error("Model call gave up after retries: %s", kind.value if kind else "unknown")
		if kind == FailureKind.INVALID_CREDENTIAL and personal:
			raise InvalidCredential()
		if kind in (FailureKind.TRANSIENT, FailureKind.QUOTA_EXCEEDED) or not personal:
			raise ServiceBusy()
		raise GenerationFailed()

	async def _personal_completion(self, user: UserRecord, prompt: str) -> str:
		credential = await self._resolver.resolve(user.id, CredentialMode.PERSONAL)
		response = await self._call_model(credential, prompt)
		if not response.ok:
			self._raise_for_failure(response)
		return response.text

	async def _shared_completion(self, prompt: str) -> str:
		try:
			credential = await self._resolver.resolve(None, CredentialMode.SHARED)
		except MissingCredential:
			logger.error("Shared model credential is not configured")
			raise ServiceBusy()
		response = await self._call_model(credential, prompt)
		if not response.ok:
			self._raise_for_failure(response, personal=False)
		return response.text

	# ------------------------------------------------------------------
	# Quizzes
	# ------------------------------------------------------------------
	async def _previous_questions(self, user_id: str) -> List[str]:
		previous = await self._store.find_assessments(user_id, limit=settings.quiz_history_window, order="desc")
		return [q.question for a in previous for q in a.questions if q.question]

	async def generate_quiz(self, user_id: Optional[str]) -> List[QuizQuestion]:
		user = await self._require_user(user_id)
		if not user.industry:
			raise ProfileIncomplete()
		prompt = prompts.build_prompt(prompts.QUIZ_MIXED, {
			"industry": user.industry,
			"skills": user.skills,
			"count": settings.quiz_question_count,
			"excludeQuestions": await self._previous_questions(user.id),
		})
		text = await self._personal_completion(user, prompt)
		quiz = validate(text, Variant.QUIZ_QUESTION_SET)
		await auditor.log("quiz_generated", user.id, mode="mixed", count=len(quiz.questions))
		return quiz.questions

	async def generate_quiz_by_difficulty(
		self,
		user_id: Optional[str],
		difficulty: str = "medium",
		count: Optional[int] = None,
	) -> List[QuizQuestion]:
		user = await self._require_user(user_id)
		if not user.industry:
			raise ProfileIncomplete()
		prompt = prompts.build_prompt(prompts.QUIZ_BY_DIFFICULTY, {
			"industry": user.industry,
			"skills": user.skills,
			"difficulty": difficulty,
			"count": count or settings.difficulty_quiz_default_count,
		})
		text = await self._personal_completion(user, prompt)
		quiz = validate(text, Variant.QUIZ_QUESTION_SET, default_difficulty=difficulty, pinned=True)
		await auditor.log("quiz_generated", user.id, mode=difficulty, count=len(quiz.questions))
		return quiz.questions

	async def generate_demo_quiz(self, industry: str, skills: Sequence[str] = ()) -> List[QuizQuestion]:
		prompt = prompts.build_prompt(prompts.QUIZ_MIXED, {
			"industry": industry,
			"skills": list(skills),
			"count": settings.quiz_question_count,
		})
		text = await self._shared_completion(prompt)
		return validate(text, Variant.QUIZ_QUESTION_SET).questions

	async def generate_demo_quiz_by_difficulty(
		self,
		industry: str,
		skills: Sequence[str] = (),
		difficulty: str = "medium",
		count: Optional[int] = None,
	) -> List[QuizQuestion]:
		prompt = prompts.build_prompt(prompts.QUIZ_BY_DIFFICULTY, {
			"industry": industry,
			"skills": list(skills),
			"difficulty": difficulty,
			"count": count or settings.difficulty_quiz_default_count,
		})
		text = await self._shared_completion(prompt)
		return validate(text, Variant.QUIZ_QUESTION_SET, default_difficulty=difficulty, pinned=True).questions

	async def _improvement_tip(self, user: UserRecord, record: AssessmentRecord) -> Optional[str]:
		prompt = prompts.build_prompt(prompts.IMPROVEMENT_TIP, {
			"industry": user.industry or "professional",
			"wrongQuestions": wrong_answers(record),
		})
		try:
			credential = await self._resolver.resolve(user.id, CredentialMode.PERSONAL)
		except (MissingCredential, DecryptionError) as exc:
			logger.warning("Skipping improvement tip for %s: %s", user.id, type(exc).__name__)
			return None
		response = await self._call_model(credential, prompt)
		if not response.ok:
			logger.warning("Improvement tip unavailable (%s)", response.failure.value)
			return None
		return validate(response.text, Variant.IMPROVEMENT_TIP)

	async def _save_assessment(self, record: AssessmentRecord) -> AssessmentRecord:
		try:
			return await self._store.create_assessment(record)
		except StoreError as exc:
			logger.warning("Full assessment save failed (%s); retrying with reduced fields", exc)
		try:
			return await self._store.create_assessment(reduced_record(record))
		except StoreError as exc:
			logger.error("Reduced assessment save also failed: %s", exc)
			raise PersistenceFailure("Failed to save quiz result. Please try again.")

	async def save_quiz_result(
		self,
		user_id: Optional[str],
		questions: Sequence[QuizQuestion],
		answers: Sequence[Optional[str]],
		time_spent: int = 0,
	) -> AssessmentRecord:
		user = await self._require_user(user_id)
		record = grade(questions, answers, time_spent, user_id=user.id)
		if record.correct_answers < record.total_questions:
			tip = await self._improvement_tip(user, record)
			record = record.model_copy(update={"improvement_tip": tip})
		saved = await self._save_assessment(record)
		await auditor.log(
			"assessment_saved",
			user.id,
			assessment_id=saved.id,
			score=saved.quiz_score,
			total_questions=saved.total_questions,
			has_tip=bool(saved.improvement_tip),
		)
		return saved

	async def get_assessments(self, user_id: Optional[str]) -> List[AssessmentRecord]:
		user = await self._require_user(user_id)
		return await self._store.find_assessments(user.id, order="desc")

	async def get_assessment_stats(self, user_id: Optional[str]) -> AssessmentStats:
		user = await self._require_user(user_id)
		records = await self._store.find_assessments(user.id, order="desc")
		return assessment_stats(records)

	# ------------------------------------------------------------------
	# Industry insights
	# ------------------------------------------------------------------
	async def _generate_insights(self, industry: str) -> Tuple[IndustryInsights, bool]:
		"""Return (insights, fresh). `fresh` is False when the fallback was used."""
		prompt = prompts.build_prompt(prompts.INDUSTRY_INSIGHTS, {"industry": industry})
		try:
			text = await self._shared_completion(prompt)
		except CoachError as exc:
			logger.warning("Insight generation for %r failed (%s); using fallback", industry, type(exc).__name__)
			return fallback_payload(Variant.INDUSTRY_INSIGHTS), False
		result = check(text, Variant.INDUSTRY_INSIGHTS)
		if result.ok:
			return result.value, True
		return validate(text, Variant.INDUSTRY_INSIGHTS), False

	def _insight_record(self, industry: str, insights: IndustryInsights) -> IndustryInsightRecord:
		now = self._now()
		return IndustryInsightRecord(
			**insights.model_dump(),
			industry=industry,
			next_update=now + timedelta(days=settings.insight_refresh_days),
			last_updated=now,
		)

	async def _create_insight(self, industry: str) -> IndustryInsightRecord:
		insights, _ = await self._generate_insights(industry)
		record = self._insight_record(industry, insights)
		try:
			created = await self._store.create_industry_insight(record)
		except UniqueViolation:
			# Another request created it first; use theirs
			winner = await self._store.find_industry_insight(industry)
			if winner is None:
				raise PersistenceFailure("Failed to load industry insights. Please try again later.")
			logger.info("Reusing concurrently created insight for %r", industry)
			return winner
		except StoreError as exc:
			logger.error("Saving insight for %r failed: %s", industry, exc)
			raise PersistenceFailure("Failed to generate industry insights. Please try again later.")
		await auditor.log("insight_created", industry=industry)
		return created

	async def _refresh_insight(self, insight: IndustryInsightRecord) -> IndustryInsightRecord:
		insights, fresh = await self._generate_insights(insight.industry)
		if not fresh:
			# Keep the stale record; the next request retries
			return insight
		replacement = self._insight_record(insight.industry, insights)
		try:
			updated = await self._store.update_industry_insight(
				insight.industry,
				**{name: value for name, value in replacement if name not in ("id", "industry")},
			)
		except StoreError as exc:
			logger.warning("Refreshing insight for %r failed: %s", insight.industry, exc)
			return insight
		await auditor.log("insight_refreshed", industry=insight.industry)
		return updated

	async def get_industry_insights(self, user_id: Optional[str]) -> IndustryInsightRecord:
		user = await self._require_user(user_id)
		if not user.industry:
			raise ProfileIncomplete()
		insight = await self._store.find_industry_insight(user.industry)
		if insight is None:
			return await self._create_insight(user.industry)
		if insight.next_update <= self._now():
			return await self._refresh_insight(insight)
		return insight

	# ------------------------------------------------------------------
	# Profile / onboarding
	# ------------------------------------------------------------------
	@staticmethod
	def _clean_profile(industry: Any, experience: Any, bio: Any, skills: Any) -> Tuple[str, int, str, List[str]]:
		if isinstance(skills, str):
			skills = [s.strip() for s in skills.split(",") if s.strip()]
		if not industry or experience is None or not bio or skills is None:
			raise InvalidInput("All fields are required: industry, experience, bio, and skills.")
		try:
			experience = int(experience)
		except (TypeError, ValueError):
			raise InvalidInput("Experience must be a whole number of years.")
		if experience < 0 or experience > 50:
			raise InvalidInput("Experience must be between 0 and 50 years.")
		if not isinstance(skills, list):
			raise InvalidInput("At least one skill is required.")
		skills = [str(s).strip() for s in skills if str(s).strip()]
		if not skills:
			raise InvalidInput("At least one skill is required.")
		return str(industry).strip(), experience, str(bio).strip(), skills

	async def update_profile(
		self,
		user_id: Optional[str],
		industry: Any,
		experience: Any,
		bio: Any,
		skills: Any,
	) -> Tuple[UserRecord, IndustryInsightRecord]:
		"""Save onboarding data and make sure the industry has an insight record.

		Both writes happen in one transaction.
		"""
		if not user_id:
			raise Unauthorized("Authentication required. Please sign in again.")
		industry, experience, bio, skills = self._clean_profile(industry, experience, bio, skills)
		user = await self._require_user(user_id)

		async def _apply(tx: Transaction) -> Tuple[UserRecord, IndustryInsightRecord]:
			insight = await tx.find_industry_insight(industry)
			if insight is None:
				insights, _ = await self._generate_insights(industry)
				try:
					insight = await tx.create_industry_insight(self._insight_record(industry, insights))
				except UniqueViolation:
					insight = await tx.find_industry_insight(industry)
			updated = await tx.update_user(user.id, industry=industry, experience=experience, bio=bio, skills=skills)
			return updated, insight

		for attempt in range(2):
			try:
				result = await self._store.transaction(_apply, timeout=settings.transaction_timeout)
			except UniqueViolation:
				if attempt:
					raise PersistenceFailure("Failed to update profile. Please try again.")
				logger.info("Insight for %r was created concurrently; re-running profile update", industry)
				continue
			except TimeoutError:
				logger.error("Profile update for %s timed out", user.id)
				raise PersistenceFailure("Failed to update profile. Please try again.")
			except (RecordNotFound, StoreError) as exc:
				logger.error("Profile update for %s failed: %s", user.id, exc)
				raise PersistenceFailure("Failed to update profile. Please try again.")
			await auditor.log("profile_updated", user.id, industry=industry)
			return result
		raise PersistenceFailure("Failed to update profile. Please try again.")

	async def onboarding_status(self, user_id: Optional[str]) -> bool:
		try:
			user = await self._require_user(user_id)
		except CoachError as exc:
			logger.info("Onboarding status unavailable: %s", type(exc).__name__)
			return False
		return bool(user.industry)

	# ------------------------------------------------------------------
	# API key settings
	# ------------------------------------------------------------------
	async def save_api_key(self, user_id: Optional[str], api_key: str) -> None:
		user = await self._require_user(user_id)
		try:
			await self._resolver.store_personal(user.id, api_key)
		except StoreError as exc:
			logger.error("Saving API key for %s failed: %s", user.id, exc)
			raise PersistenceFailure("Could not save the API Key. Please try again.")
		await auditor.log("api_key_saved", user.id, key_hint=mask_credential(api_key.strip()))

	async def api_key_status(self, user_id: Optional[str]) -> bool:
		return await self._resolver.has_personal(user_id)

	# ------------------------------------------------------------------
	# Cover letters
	# ------------------------------------------------------------------
	async def generate_cover_letter(
		self,
		user_id: Optional[str],
		job_title: str,
		company_name: str,
		job_description: str,
	) -> CoverLetterRecord:
		user = await self._require_user(user_id)
		prompt = prompts.build_prompt(prompts.COVER_LETTER, {
			"jobTitle": job_title,
			"companyName": company_name,
			"jobDescription": job_description,
			"industry": user.industry,
			"experience": user.experience,
			"skills": user.skills,
			"bio": user.bio,
		})
		text = await self._personal_completion(user, prompt)
		result = check(text, Variant.COVER_LETTER)
		if not result.ok:
			raise GenerationFailed("Failed to generate cover letter. Please try again.")
		record = CoverLetterRecord(
			user_id=user.id,
			content=result.value,
			job_description=job_description,
			company_name=company_name,
			job_title=job_title,
		)
		try:
			saved = await self._store.create_cover_letter(record)
		except StoreError as exc:
			logger.error("Saving cover letter failed: %s", exc)
			raise PersistenceFailure()
		await auditor.log("cover_letter_generated", user.id, cover_letter_id=saved.id, company_name=company_name)
		return saved

	async def list_cover_letters(self, user_id: Optional[str]) -> List[CoverLetterRecord]:
		user = await self._require_user(user_id)
		return await self._store.find_cover_letters(user.id)

	async def get_cover_letter(self, user_id: Optional[str], letter_id: str) -> Optional[CoverLetterRecord]:
		user = await self._require_user(user_id)
		return await self._store.find_cover_letter(user.id, letter_id)

	async def delete_cover_letter(self, user_id: Optional[str], letter_id: str) -> bool:
		user = await self._require_user(user_id)
		return await self._store.delete_cover_letter(user.id, letter_id)

	# ------------------------------------------------------------------
	# Public demo
	# ------------------------------------------------------------------
	async def improve_public_content(self, content: str) -> str:
		prompt = prompts.build_prompt(prompts.IMPROVE_CONTENT, {"text": content})
		text = await self._shared_completion(prompt)
		return validate(text, Variant.IMPROVED_TEXT, fallback=content.strip())


coach_service = CoachService(store)


def get_coach() -> CoachService:
	return coach_service
