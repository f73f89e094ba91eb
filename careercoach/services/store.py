from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TypeVar

import anyio
from pydantic import BaseModel, ValidationError

from careercoach.config import settings
from careercoach.schemas import (
	AssessmentRecord,
	CoverLetterRecord,
	IndustryInsightRecord,
	UserRecord,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class StoreError(Exception):
	"""Raised when a read or write against the store cannot be completed."""


class UniqueViolation(StoreError):
	"""Another writer already created a record with the same unique key."""


class RecordNotFound(StoreError):
	pass


_COLLECTIONS: Dict[str, Type[BaseModel]] = {
	"users": UserRecord,
	"assessments": AssessmentRecord,
	"industry_insights": IndustryInsightRecord,
	"cover_letters": CoverLetterRecord,
}


def _key(collection: str, record: BaseModel) -> str:
	if collection == "industry_insights":
		return record.industry
	return record.id


class Transaction:
	"""Staging view handed to the callable passed to `JsonStore.transaction`.

	Reads see staged writes first, then committed state. Nothing is visible to
	other callers until the store commits the whole batch.
	"""

	def __init__(self, store: "JsonStore") -> None:
		self._store = store
		self._users: Dict[str, UserRecord] = {}
		self._insights: Dict[str, IndustryInsightRecord] = {}

	async def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
		if user_id in self._users:
			return self._users[user_id].model_copy(deep=True)
		return await self._store.find_user_by_id(user_id)

	async def update_user(self, user_id: str, **fields: Any) -> UserRecord:
		current = await self.find_user_by_id(user_id)
		if current is None:
			raise RecordNotFound(f"user {user_id} not found")
		updated = current.model_copy(update=fields)
		self._users[user_id] = updated
		return updated.model_copy(deep=True)

	async def find_industry_insight(self, industry: str) -> Optional[IndustryInsightRecord]:
		if industry in self._insights:
			return self._insights[industry].model_copy(deep=True)
		return await self._store.find_industry_insight(industry)

	async def create_industry_insight(self, record: IndustryInsightRecord) -> IndustryInsightRecord:
		if record.industry in self._insights or await self._store.find_industry_insight(record.industry):
			raise UniqueViolation(f"industry insight for {record.industry!r} already exists")
		self._insights[record.industry] = record.model_copy(deep=True)
		return record

	def staged(self) -> Dict[str, Dict[str, BaseModel]]:
		return {"users": self._users, "industry_insights": self._insights}


class JsonStore:
	"""In-process persistence gateway, optionally mirrored to JSON files.

	Each collection lives in ``<data_dir>/<collection>.json``. Industry insights
	are unique by industry.
	"""

	def __init__(self, data_dir: Optional[str] = None) -> None:
		self._data: Dict[str, Dict[str, BaseModel]] = {name: {} for name in _COLLECTIONS}
		self._lock = asyncio.Lock()
		self._data_dir = Path(data_dir) if data_dir else None
		self._load_all()

	# ------------------------------------------------------------------
	# File persistence
	# ------------------------------------------------------------------
	def _collection_path(self, collection: str) -> Path:
		return self._data_dir / f"{collection}.json"

	def _load_all(self) -> None:
		if self._data_dir is None:
			return
		for collection, model in _COLLECTIONS.items():
			path = self._collection_path(collection)
			if not path.exists():
				continue
			try:
				with path.open("r", encoding="utf-8") as f:
					raw = json.load(f)
				for item in raw:
					record = model.model_validate(item)
					self._data[collection][_key(collection, record)] = record
			except (OSError, json.JSONDecodeError, ValidationError) as exc:
				logger.error("Skipping unreadable collection file %s: %s", path, exc)

	def _write_tmp(self, collection: str) -> Path:
		"""Serialize one collection next to its file and return the temp path."""
		tmp = self._collection_path(collection).with_suffix(".json.tmp")
		payload = [r.model_dump(mode="json", by_alias=True) for r in self._data[collection].values()]
		try:
			with tmp.open("w", encoding="utf-8") as f:
				json.dump(payload, f, ensure_ascii=False, indent=2)
		except OSError:
			if tmp.is_file():
				tmp.unlink()
			raise
		return tmp

	def _stage_files(self, collections: List[str]) -> List[Path]:
		"""Write every collection to its temp file, or leave no temp files behind."""
		if self._data_dir is None:
			return []
		self._data_dir.mkdir(parents=True, exist_ok=True)
		written: List[Path] = []
		try:
			for collection in collections:
				written.append(self._write_tmp(collection))
		except OSError:
			for tmp in written:
				tmp.unlink(missing_ok=True)
			raise
		return written

	def _commit(self, changes: Dict[str, Dict[str, BaseModel]], deletes: Optional[Dict[str, List[str]]] = None) -> None:
		"""Apply a batch of writes in memory and on disk, or none of them.

		All touched collections are written to temp files first; the real files
		are only replaced once every temp file exists.
		"""
		deletes = deletes or {}
		touched = sorted({c for c, items in changes.items() if items} | {c for c, keys in deletes.items() if keys})
		snapshot = {c: dict(self._data[c]) for c in touched}
		for collection, items in changes.items():
			for key, record in items.items():
				self._data[collection][key] = record.model_copy(deep=True)
		for collection, keys in deletes.items():
			for key in keys:
				self._data[collection].pop(key, None)

		try:
			staged = self._stage_files(touched)
		except OSError as exc:
			self._data.update(snapshot)
			raise StoreError(f"failed to persist {', '.join(touched)}") from exc

		replaced: List[str] = []
		try:
			for collection, tmp in zip(touched, staged):
				os.replace(tmp, self._collection_path(collection))
				replaced.append(collection)
		except OSError as exc:
			self._data.update(snapshot)
			for tmp in staged:
				tmp.unlink(missing_ok=True)
			self._rewrite(replaced)
			raise StoreError(f"failed to persist {', '.join(touched)}") from exc

	def _rewrite(self, collections: List[str]) -> None:
		# Put files already swapped in back to the restored in-memory state
		for collection in collections:
			try:
				os.replace(self._write_tmp(collection), self._collection_path(collection))
			except OSError as exc:
				logger.error("Could not roll back %s on disk: %s", self._collection_path(collection), exc)

	async def _get(self, collection: str, key: str) -> Optional[Any]:
		record = self._data[collection].get(key)
		return record.model_copy(deep=True) if record is not None else None

	# ------------------------------------------------------------------
	# Users
	# ------------------------------------------------------------------
	async def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
		return await self._get("users", user_id)

	async def ensure_user(self, user_id: str, name: Optional[str] = None, email: Optional[str] = None) -> UserRecord:
		"""Return the user, provisioning a record the first time an identity is seen."""
		async with self._lock:
			existing = self._data["users"].get(user_id)
			if existing is not None:
				return existing.model_copy(deep=True)
			user = UserRecord(id=user_id, name=(name or "").strip() or "Anonymous User", email=email)
			self._commit({"users": {user_id: user}})
			logger.info("Created new user %s", user_id)
			return user

	async def update_user(self, user_id: str, **fields: Any) -> UserRecord:
		async with self._lock:
			current = self._data["users"].get(user_id)
			if current is None:
				raise RecordNotFound(f"user {user_id} not found")
			updated = current.model_copy(update=fields)
			self._commit({"users": {user_id: updated}})
			return updated.model_copy(deep=True)

	# ------------------------------------------------------------------
	# Assessments
	# ------------------------------------------------------------------
	async def find_assessments(self, user_id: str, limit: Optional[int] = None, order: str = "desc") -> List[AssessmentRecord]:
		items = [r for r in self._data["assessments"].values() if r.user_id == user_id]
		items.sort(key=lambda r: r.created_at, reverse=(order == "desc"))
		if limit is not None:
			items = items[:limit]
		return [r.model_copy(deep=True) for r in items]

	async def create_assessment(self, record: AssessmentRecord) -> AssessmentRecord:
		async with self._lock:
			if record.id in self._data["assessments"]:
				raise UniqueViolation(f"assessment {record.id} already exists")
			self._commit({"assessments": {record.id: record}})
			return record.model_copy(deep=True)

	# ------------------------------------------------------------------
	# Industry insights
	# ------------------------------------------------------------------
	async def find_industry_insight(self, industry: str) -> Optional[IndustryInsightRecord]:
		return await self._get("industry_insights", industry)

	async def create_industry_insight(self, record: IndustryInsightRecord) -> IndustryInsightRecord:
		async with self._lock:
			if record.industry in self._data["industry_insights"]:
				raise UniqueViolation(f"industry insight for {record.industry!r} already exists")
			self._commit({"industry_insights": {record.industry: record}})
			return record.model_copy(deep=True)

	async def update_industry_insight(self, industry: str, **fields: Any) -> IndustryInsightRecord:
		async with self._lock:
			current = self._data["industry_insights"].get(industry)
			if current is None:
				raise RecordNotFound(f"industry insight for {industry!r} not found")
			updated = current.model_copy(update=fields)
			self._commit({"industry_insights": {industry: updated}})
			return updated.model_copy(deep=True)

	# ------------------------------------------------------------------
	# Cover letters
	# ------------------------------------------------------------------
	async def create_cover_letter(self, record: CoverLetterRecord) -> CoverLetterRecord:
		async with self._lock:
			self._commit({"cover_letters": {record.id: record}})
			return record.model_copy(deep=True)

	async def find_cover_letters(self, user_id: str) -> List[CoverLetterRecord]:
		items = [r for r in self._data["cover_letters"].values() if r.user_id == user_id]
		items.sort(key=lambda r: r.created_at, reverse=True)
		return [r.model_copy(deep=True) for r in items]

	async def find_cover_letter(self, user_id: str, letter_id: str) -> Optional[CoverLetterRecord]:
		record = self._data["cover_letters"].get(letter_id)
		if record is None or record.user_id != user_id:
			return None
		return record.model_copy(deep=True)

	async def delete_cover_letter(self, user_id: str, letter_id: str) -> bool:
		async with self._lock:
			record = self._data["cover_letters"].get(letter_id)
			if record is None or record.user_id != user_id:
				return False
			self._commit({}, deletes={"cover_letters": [letter_id]})
			return True

	# ------------------------------------------------------------------
	# Transactions
	# ------------------------------------------------------------------
	async def transaction(self, fn: Callable[[Transaction], Awaitable[T]], timeout: Optional[float] = None) -> T:
		"""Run `fn` against a staging view and commit its writes atomically.

		If `fn` raises, or does not finish within `timeout` seconds (TimeoutError),
		nothing is written. Unique keys are re-checked at commit time, so a
		concurrent writer that got there first surfaces as UniqueViolation.
		"""
		tx = Transaction(self)
		with anyio.fail_after(timeout if timeout is not None else settings.transaction_timeout):
			result = await fn(tx)
		async with self._lock:
			staged = tx.staged()
			for industry in staged["industry_insights"]:
				if industry in self._data["industry_insights"]:
					raise UniqueViolation(f"industry insight for {industry!r} already exists")
			self._commit(staged)
		return result


store = JsonStore(settings.data_dir)
