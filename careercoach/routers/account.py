from fastapi import APIRouter, Depends

from careercoach.schemas import (
	ApiKeyIn,
	ApiKeyStatus,
	OnboardingStatus,
	ProfileIn,
	ProfileOut,
	UserOut,
)
from careercoach.services.coach_service import CoachService, get_coach
from careercoach.utils.security import current_user_id, optional_user_id, verify_api_key


router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.put("/profile", response_model=ProfileOut)
async def update_profile(
	payload: ProfileIn,
	user_id: str = Depends(current_user_id),
	coach: CoachService = Depends(get_coach),
):
	user, insight = await coach.update_profile(user_id, payload.industry, payload.experience, payload.bio, payload.skills)
	return ProfileOut(user=UserOut.from_record(user), industry_insight=insight)


@router.get("/onboarding", response_model=OnboardingStatus)
async def onboarding_status(user_id: str | None = Depends(optional_user_id), coach: CoachService = Depends(get_coach)):
	return OnboardingStatus(is_onboarded=await coach.onboarding_status(user_id))


@router.put("/api-key", response_model=ApiKeyStatus)
async def save_api_key(
	payload: ApiKeyIn,
	user_id: str = Depends(current_user_id),
	coach: CoachService = Depends(get_coach),
):
	await coach.save_api_key(user_id, payload.api_key)
	return ApiKeyStatus(has_api_key=True)


@router.get("/api-key", response_model=ApiKeyStatus)
async def api_key_status(user_id: str | None = Depends(optional_user_id), coach: CoachService = Depends(get_coach)):
	return ApiKeyStatus(has_api_key=await coach.api_key_status(user_id))
