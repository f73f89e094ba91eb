from typing import List

from fastapi import APIRouter, Depends

from careercoach.schemas import DemoDifficultyQuizIn, DemoQuizIn, ImproveIn, ImprovedContentOut, QuizQuestion
from careercoach.services.coach_service import CoachService, get_coach
from careercoach.utils.security import verify_api_key


# No user identity here; these run on the shared service credential
router = APIRouter(prefix="/public", dependencies=[Depends(verify_api_key)])


@router.post("/improve", response_model=ImprovedContentOut)
async def improve_public_content(payload: ImproveIn, coach: CoachService = Depends(get_coach)):
	return ImprovedContentOut(content=await coach.improve_public_content(payload.content))


@router.post("/demo-quiz", response_model=List[QuizQuestion])
async def generate_demo_quiz(payload: DemoQuizIn, coach: CoachService = Depends(get_coach)):
	return await coach.generate_demo_quiz(payload.industry, payload.skills)


@router.post("/demo-quiz/difficulty", response_model=List[QuizQuestion])
async def generate_demo_quiz_by_difficulty(payload: DemoDifficultyQuizIn, coach: CoachService = Depends(get_coach)):
	return await coach.generate_demo_quiz_by_difficulty(
		payload.industry, payload.skills, payload.difficulty, payload.count,
	)
