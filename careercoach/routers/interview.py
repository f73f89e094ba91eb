from typing import List

from fastapi import APIRouter, Depends

from careercoach.schemas import (
	AssessmentRecord,
	AssessmentStats,
	DifficultyQuizIn,
	QuizQuestion,
	QuizSubmission,
)
from careercoach.services.coach_service import CoachService, get_coach
from careercoach.utils.security import current_user_id, verify_api_key


router = APIRouter(prefix="/interview", dependencies=[Depends(verify_api_key)])


@router.post("/quiz", response_model=List[QuizQuestion])
async def generate_quiz(user_id: str = Depends(current_user_id), coach: CoachService = Depends(get_coach)):
	return await coach.generate_quiz(user_id)


@router.post("/quiz/difficulty", response_model=List[QuizQuestion])
async def generate_quiz_by_difficulty(
	payload: DifficultyQuizIn,
	user_id: str = Depends(current_user_id),
	coach: CoachService = Depends(get_coach),
):
	return await coach.generate_quiz_by_difficulty(user_id, payload.difficulty, payload.count)


@router.post("/results", response_model=AssessmentRecord)
async def save_quiz_result(
	payload: QuizSubmission,
	user_id: str = Depends(current_user_id),
	coach: CoachService = Depends(get_coach),
):
	return await coach.save_quiz_result(user_id, payload.questions, payload.answers, payload.time_spent)


@router.get("/assessments", response_model=List[AssessmentRecord])
async def get_assessments(user_id: str = Depends(current_user_id), coach: CoachService = Depends(get_coach)):
	return await coach.get_assessments(user_id)


@router.get("/stats", response_model=AssessmentStats)
async def get_assessment_stats(user_id: str = Depends(current_user_id), coach: CoachService = Depends(get_coach)):
	return await coach.get_assessment_stats(user_id)
