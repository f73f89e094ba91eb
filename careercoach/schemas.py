from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Dict, List, Literal, Optional, Union
from datetime import datetime, timezone
import uuid


Difficulty = Literal["easy", "medium", "hard"]
DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")
TIME_ESTIMATES: Dict[str, int] = {"easy": 30, "medium": 60, "hard": 90}
DEFAULT_CATEGORY = "Technical"


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


def _new_id() -> str:
	return uuid.uuid4().hex


class CamelModel(BaseModel):
	"""Model output and the web client both speak camelCase."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Structured payload variants produced by the model
# ---------------------------------------------------------------------------


class SalaryRange(CamelModel):
	role: str
	min: float
	max: float
	median: float
	location: str = "General"


class IndustryInsights(CamelModel):
	salary_ranges: List[SalaryRange] = Field(min_length=3)
	growth_rate: float
	demand_level: Literal["High", "Medium", "Low"]
	top_skills: List[str] = Field(min_length=3)
	market_outlook: Literal["Positive", "Neutral", "Negative"]
	key_trends: List[str]
	recommended_skills: List[str]

	@field_validator("demand_level", "market_outlook", mode="before")
	@classmethod
	def capitalize_levels(cls, v):
		if isinstance(v, str):
			return v.strip().capitalize()
		return v


class QuizQuestion(CamelModel):
	id: Optional[str] = None
	question: str = Field(min_length=1)
	options: List[str] = Field(min_length=4, max_length=4)
	correct_answer: str
	explanation: str
	difficulty: Difficulty = "medium"
	category: str = DEFAULT_CATEGORY
	time_estimate: Optional[int] = None

	@field_validator("difficulty", mode="before")
	@classmethod
	def normalize_difficulty(cls, v):
		if v is None or v == "":
			return "medium"
		if isinstance(v, str):
			return v.strip().lower()
		return v

	@field_validator("category", mode="before")
	@classmethod
	def default_category(cls, v):
		return v or DEFAULT_CATEGORY

	@model_validator(mode="after")
	def answer_is_an_option(self) -> "QuizQuestion":
		if self.correct_answer not in self.options:
			raise ValueError("correctAnswer must equal one of the options")
		return self


class QuizQuestionSet(CamelModel):
	questions: List[QuizQuestion] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------


class UserRecord(CamelModel):
	id: str
	name: str = "Anonymous User"
	email: Optional[str] = None
	industry: Optional[str] = None
	experience: Optional[int] = None
	bio: Optional[str] = None
	skills: List[str] = Field(default_factory=list)
	api_key_ciphertext: Optional[str] = None
	created_at: datetime = Field(default_factory=_utcnow)


class GradedQuestion(CamelModel):
	"""A presented question echoed back with the user's answer.

	Only the fields kept by the reduced-field save are required.
	"""

	id: Optional[str] = None
	question: str
	options: List[str] = Field(default_factory=list)
	correct_answer: str
	user_answer: Optional[str] = None
	is_correct: bool
	explanation: str = ""
	difficulty: Optional[Difficulty] = None
	category: Optional[str] = None
	time_estimate: Optional[int] = None


class DifficultyStats(CamelModel):
	total: int = 0
	correct: int = 0
	score: float = 0.0


class AssessmentRecord(CamelModel):
	id: str = Field(default_factory=_new_id)
	user_id: str
	quiz_score: float = Field(ge=0, le=100)
	questions: List[GradedQuestion]
	category: str = DEFAULT_CATEGORY
	improvement_tip: Optional[str] = None
	time_spent: Optional[int] = Field(default=None, ge=0)
	difficulty_breakdown: Optional[Dict[str, DifficultyStats]] = None
	total_questions: Optional[int] = None
	correct_answers: Optional[int] = None
	created_at: datetime = Field(default_factory=_utcnow)


class IndustryInsightRecord(IndustryInsights):
	id: str = Field(default_factory=_new_id)
	industry: str
	next_update: datetime
	last_updated: datetime = Field(default_factory=_utcnow)


class CoverLetterRecord(CamelModel):
	id: str = Field(default_factory=_new_id)
	user_id: str
	content: str
	job_description: str
	company_name: str
	job_title: str
	status: str = "completed"
	created_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Request / response bodies
# ---------------------------------------------------------------------------


class DifficultyQuizIn(CamelModel):
	difficulty: Difficulty = "medium"
	count: Optional[int] = Field(default=None, ge=1, le=50)


class DemoQuizIn(CamelModel):
	industry: str = Field(..., min_length=1)
	skills: List[str] = Field(default_factory=list)


class DemoDifficultyQuizIn(DemoQuizIn):
	difficulty: Difficulty = "medium"
	count: Optional[int] = Field(default=None, ge=1, le=50)


class QuizSubmission(CamelModel):
	questions: List[QuizQuestion] = Field(..., min_length=1, description="The exact question set that was presented")
	answers: List[Optional[str]] = Field(default_factory=list)
	time_spent: int = Field(default=0, ge=0, description="Seconds")


class AssessmentStats(CamelModel):
	total_quizzes: int = 0
	average_score: float = 0
	best_score: float = 0
	total_questions: int = 0
	difficulty_breakdown: Dict[str, int] = Field(default_factory=lambda: {d: 0 for d in DIFFICULTIES})
	category_breakdown: Dict[str, int] = Field(default_factory=dict)
	improvement_trend: float = 0


class ProfileIn(CamelModel):
	industry: Optional[str] = None
	experience: Optional[int] = None
	bio: Optional[str] = None
	skills: Union[List[str], str, None] = None


class ProfileOut(CamelModel):
	user: "UserOut"
	industry_insight: IndustryInsightRecord


class UserOut(CamelModel):
	id: str
	name: str
	email: Optional[str] = None
	industry: Optional[str] = None
	experience: Optional[int] = None
	bio: Optional[str] = None
	skills: List[str] = Field(default_factory=list)

	@classmethod
	def from_record(cls, user: UserRecord) -> "UserOut":
		return cls(**user.model_dump(exclude={"api_key_ciphertext", "created_at"}))


class OnboardingStatus(CamelModel):
	is_onboarded: bool


class ApiKeyIn(CamelModel):
	api_key: str = Field(..., min_length=1)


class ApiKeyStatus(CamelModel):
	has_api_key: bool


class CoverLetterIn(CamelModel):
	job_title: str = Field(..., min_length=1)
	company_name: str = Field(..., min_length=1)
	job_description: str = Field(..., min_length=1)


class ImproveIn(CamelModel):
	content: str


class ImprovedContentOut(CamelModel):
	content: str


ProfileOut.model_rebuild()
