from __future__ import annotations


class CoachError(Exception):
	"""Base class for errors surfaced to callers.

	`message` is safe to show to end users; it never carries raw upstream text.
	"""

	status_code: int = 500
	default_message: str = "Something went wrong. Please try again."

	def __init__(self, message: str | None = None) -> None:
		self.message = message or self.default_message
		super().__init__(self.message)


class Unauthorized(CoachError):
	status_code = 401
	default_message = "Unauthorized"


class UserNotFound(CoachError):
	status_code = 404
	default_message = "User profile not found. Please complete onboarding first."


class ProfileIncomplete(CoachError):
	status_code = 400
	default_message = "Industry not set. Please complete your profile first."


class InvalidInput(CoachError):
	status_code = 422
	default_message = "Invalid input."


class MissingCredential(CoachError):
	status_code = 400
	default_message = "Please add your Gemini API Key in the settings page first."


class DecryptionError(CoachError):
	status_code = 400
	default_message = "Your stored API key could not be read. Please save it again in settings."


class InvalidCredential(CoachError):
	status_code = 400
	default_message = "Your Gemini API Key is not valid. Please check it in settings."


class ServiceBusy(CoachError):
	status_code = 503
	default_message = "AI service is currently busy. Please try again later."


class GenerationFailed(CoachError):
	status_code = 502
	default_message = "Failed to generate content. Your API key might be invalid or has exceeded its limit."


class PersistenceFailure(CoachError):
	status_code = 503
	default_message = "Failed to save your data. Please try again."
