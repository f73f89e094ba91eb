from __future__ import annotations

import enum
import logging
from typing import Optional

from careercoach.config import settings
from careercoach.errors import InvalidInput, MissingCredential, Unauthorized, UserNotFound
from careercoach.services.store import JsonStore
from careercoach.utils.crypto import CredentialCipher


logger = logging.getLogger(__name__)


class CredentialMode(str, enum.Enum):
	PERSONAL = "personal"
	SHARED = "shared"


# Provider -> expected key prefix
KEY_PREFIXES = {
	"gemini": "AIzaSy",
	"groq": "gsk_",
}


class CredentialResolver:
	"""Looks up the credential a model call should use. Never touches the network."""

	def __init__(
		self,
		store: JsonStore,
		cipher: Optional[CredentialCipher] = None,
		shared_credential: Optional[str] = None,
		provider: Optional[str] = None,
	) -> None:
		self._store = store
		self._cipher = cipher
		self._shared = shared_credential
		self._provider = (provider or settings.llm_provider).lower()

	@property
	def cipher(self) -> CredentialCipher:
		if self._cipher is None:
			# Built lazily so the service can start without ENCRYPTION_KEY for public flows
			self._cipher = CredentialCipher(settings.encryption_key)
		return self._cipher

	@property
	def has_shared_credential(self) -> bool:
		return bool(self._shared)

	async def resolve(self, user_id: Optional[str], mode: CredentialMode) -> str:
		if mode == CredentialMode.SHARED:
			if not self._shared:
				raise MissingCredential("The AI service is not configured. Please try again later.")
			return self._shared

		if not user_id:
			raise Unauthorized()
		user = await self._store.find_user_by_id(user_id)
		if user is None:
			raise UserNotFound()
		if not user.api_key_ciphertext:
			raise MissingCredential()
		# DecryptionError propagates for malformed or foreign ciphertext
		return self.cipher.decrypt(user_id, user.api_key_ciphertext)

	def check_key_format(self, api_key: str) -> str:
		api_key = (api_key or "").strip()
		prefix = KEY_PREFIXES.get(self._provider)
		if not api_key or (prefix and not api_key.startswith(prefix)):
			raise InvalidInput(f"Invalid {self._provider.capitalize()} API Key format.")
		return api_key

	async def store_personal(self, user_id: str, api_key: str) -> None:
		api_key = self.check_key_format(api_key)
		token = self.cipher.encrypt(user_id, api_key)
		await self._store.update_user(user_id, api_key_ciphertext=token)

	async def has_personal(self, user_id: Optional[str]) -> bool:
		if not user_id:
			return False
		user = await self._store.find_user_by_id(user_id)
		return bool(user and user.api_key_ciphertext)
