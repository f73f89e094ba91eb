from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from careercoach.errors import DecryptionError


NONCE_SIZE = 12
KEY_SIZE = 32
_KDF_INFO_PREFIX = b"careercoach/credential/v1:"


class CredentialCipher:
	"""Encrypts per-user API credentials at rest.

	Ciphertext format is ``ivHex:cipherHex``. Every user gets a key derived
	from the process secret, and the user id is bound as associated data, so a
	token stored for one user never decrypts as another. A fresh nonce is drawn
	for every encryption.
	"""

	def __init__(self, secret: str | bytes | None) -> None:
		if not secret:
			raise ValueError("ENCRYPTION_KEY is not set in environment variables")
		self._secret = secret.encode("utf-8") if isinstance(secret, str) else secret

	def _user_key(self, user_id: str) -> bytes:
		hkdf = HKDF(
			algorithm=hashes.SHA256(),
			length=KEY_SIZE,
			salt=None,
			info=_KDF_INFO_PREFIX + user_id.encode("utf-8"),
		)
		return hkdf.derive(self._secret)

	def encrypt(self, user_id: str, plaintext: str) -> str:
		nonce = os.urandom(NONCE_SIZE)
		aead = AESGCM(self._user_key(user_id))
		ciphertext = aead.encrypt(nonce, plaintext.encode("utf-8"), user_id.encode("utf-8"))
		return nonce.hex() + ":" + ciphertext.hex()

	def decrypt(self, user_id: str, token: str) -> str:
		if not isinstance(token, str) or ":" not in token:
			raise DecryptionError()
		iv_hex, cipher_hex = token.split(":", 1)
		try:
			nonce = bytes.fromhex(iv_hex)
			ciphertext = bytes.fromhex(cipher_hex)
		except ValueError:
			raise DecryptionError()
		if len(nonce) != NONCE_SIZE or not ciphertext:
			raise DecryptionError()
		aead = AESGCM(self._user_key(user_id))
		try:
			plaintext = aead.decrypt(nonce, ciphertext, user_id.encode("utf-8"))
		except InvalidTag:
			raise DecryptionError()
		return plaintext.decode("utf-8")


def mask_credential(value: str | None, visible_chars: int = 4) -> str:
	"""Mask a credential for display, e.g. 'AIzaSyABC...' -> 'AIza***'."""
	if not value or not isinstance(value, str):
		return "[EMPTY]"
	if len(value) <= visible_chars:
		return "***"
	return value[:visible_chars] + "***"
