from fastapi import APIRouter, Depends

from careercoach.schemas import IndustryInsightRecord
from careercoach.services.coach_service import CoachService, get_coach
from careercoach.utils.security import current_user_id, verify_api_key


router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("/insights", response_model=IndustryInsightRecord)
async def get_industry_insights(user_id: str = Depends(current_user_id), coach: CoachService = Depends(get_coach)):
	return await coach.get_industry_insights(user_id)
