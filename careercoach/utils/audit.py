from __future__ import annotations

import json
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import asyncio

from careercoach.utils.logging import redact


# Fields that may hold secrets or generated bodies; never written to the audit trail
_DROPPED_FIELDS = {"api_key", "credential", "content", "prompt", "questions"}


class JsonlAuditor:
	"""Append-only JSONL trail of domain events (quiz saved, insight created, ...)."""

	def __init__(self, path: Optional[str] = None) -> None:
		self._path = Path(path) if path else None
		self._lock = asyncio.Lock()

	def configure(self, path: Optional[str]) -> None:
		self._path = Path(path) if path else None

	@property
	def enabled(self) -> bool:
		return self._path is not None

	async def log(self, event: str, user_id: Optional[str] = None, **fields: Any) -> None:
		if not self._path:
			return
		record: Dict[str, Any] = {
			"ts": datetime.now(timezone.utc).isoformat(),
			"type": event,
		}
		if user_id:
			record["user_id"] = user_id
		for key, value in fields.items():
			if key in _DROPPED_FIELDS:
				continue
			record[key] = redact(value) if isinstance(value, str) else value
		line = json.dumps(record, ensure_ascii=False, default=str)
		async with self._lock:
			self._path.parent.mkdir(parents=True, exist_ok=True)
			with self._path.open("a", encoding="utf-8") as f:
				f.write(line + "\n")


auditor = JsonlAuditor()
