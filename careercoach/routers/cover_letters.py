from typing import List

from fastapi import APIRouter, Depends, HTTPException

from careercoach.schemas import CoverLetterIn, CoverLetterRecord
from careercoach.services.coach_service import CoachService, get_coach
from careercoach.utils.security import current_user_id, verify_api_key


router = APIRouter(prefix="/cover-letters", dependencies=[Depends(verify_api_key)])


@router.post("", response_model=CoverLetterRecord)
async def generate_cover_letter(
	payload: CoverLetterIn,
	user_id: str = Depends(current_user_id),
	coach: CoachService = Depends(get_coach),
):
	return await coach.generate_cover_letter(user_id, payload.job_title, payload.company_name, payload.job_description)


@router.get("", response_model=List[CoverLetterRecord])
async def list_cover_letters(user_id: str = Depends(current_user_id), coach: CoachService = Depends(get_coach)):
	return await coach.list_cover_letters(user_id)


@router.get("/{letter_id}", response_model=CoverLetterRecord)
async def get_cover_letter(letter_id: str, user_id: str = Depends(current_user_id), coach: CoachService = Depends(get_coach)):
	letter = await coach.get_cover_letter(user_id, letter_id)
	if letter is None:
		raise HTTPException(status_code=404, detail="Cover letter not found")
	return letter


@router.delete("/{letter_id}")
async def delete_cover_letter(letter_id: str, user_id: str = Depends(current_user_id), coach: CoachService = Depends(get_coach)):
	if not await coach.delete_cover_letter(user_id, letter_id):
		raise HTTPException(status_code=404, detail="Cover letter not found")
	return {"ok": True}
