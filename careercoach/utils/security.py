from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from typing import Optional

from careercoach.config import settings
from careercoach.errors import Unauthorized
from careercoach.services.coach_service import CoachService, get_coach


async def verify_api_key(authorization: Optional[str] = Header(default=None)) -> None:
	if not settings.api_key:
		return
	if not authorization or not authorization.startswith("Bearer "):
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")
	key = authorization.removeprefix("Bearer ")
	if key != settings.api_key:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


async def current_user_id(
	x_user_id: Optional[str] = Header(default=None),
	x_user_name: Optional[str] = Header(default=None),
	x_user_email: Optional[str] = Header(default=None),
	coach: CoachService = Depends(get_coach),
) -> str:
	# Identity is established upstream by the auth proxy and forwarded as headers
	user_id = (x_user_id or "").strip()
	if not user_id:
		raise Unauthorized()
	await coach.ensure_user(user_id, name=x_user_name, email=x_user_email)
	return user_id


async def optional_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
	return (x_user_id or "").strip() or None
