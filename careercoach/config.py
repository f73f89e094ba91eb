from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List
from dotenv import load_dotenv


# Ensure .env is loaded eagerly
load_dotenv(dotenv_path=".env")


class Settings(BaseSettings):
	# Server
	host: str = "0.0.0.0"
	port: int = 8000
	cors_allow_origins: List[str] = [
		"http://localhost:3000",
		"http://127.0.0.1:3000",
	]

	# Auth
	api_key: str | None = None  # bearer key expected from the upstream auth proxy

	# LLM Provider Selection
	llm_provider: str = "gemini"  # options: gemini, groq

	# Google Gemini (gemini_api_key is the shared credential for public/demo flows)
	gemini_api_key: str | None = None
	gemini_model: str = "gemini-1.5-flash"

	# Groq
	groq_api_key: str | None = None
	groq_model: str = "openai/gpt-oss-120b"
	answer_temperature: float = 0.7
	groq_max_tokens: int = 4096

	# Credential store
	encryption_key: str | None = None

	# Retry policy for model calls
	retry_max_attempts: int = 4
	retry_base_delay: float = 1.0  # seconds

	# Persistence
	data_dir: str | None = "data"
	transaction_timeout: float = 10.0

	# Quiz / insights
	quiz_question_count: int = 25
	quiz_history_window: int = 5
	difficulty_quiz_default_count: int = 15
	insight_refresh_days: int = 7

	# Logging
	log_level: str = "INFO"
	analytics_path: str | None = None  # e.g., logs/coach.jsonl

	@field_validator("answer_temperature")
	@classmethod
	def clamp_temperature(cls, v: float) -> float:
		return max(0.0, min(1.0, v))

	@field_validator("transaction_timeout")
	@classmethod
	def floor_transaction_timeout(cls, v: float) -> float:
		# Insight generation runs inside the transaction
		return max(10.0, v)

	@field_validator("retry_max_attempts")
	@classmethod
	def at_least_one_attempt(cls, v: int) -> int:
		return max(1, v)

	@field_validator("llm_provider")
	@classmethod
	def normalize_provider(cls, v: str) -> str:
		return (v or "gemini").strip().lower()

	@field_validator("cors_allow_origins", mode="before")
	@classmethod
	def parse_cors_origins(cls, v):
		# Allow environment variable override
		if isinstance(v, str):
			return [origin.strip() for origin in v.split(",")]
		return v

	@property
	def shared_credential(self) -> str | None:
		if self.llm_provider == "groq":
			return self.groq_api_key
		return self.gemini_api_key

	class Config:
		env_file = ".env"
		env_file_encoding = "utf-8"


settings = Settings()
