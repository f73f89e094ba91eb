"""Prompt templates for every model-backed task.

Rendering is plain string interpolation: the same inputs always produce the
same prompt, and caller-supplied lists are joined in full.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Sequence

from careercoach.errors import InvalidInput
from careercoach.schemas import DIFFICULTIES


INDUSTRY_INSIGHTS = "industry-insights"
QUIZ_MIXED = "quiz-mixed"
QUIZ_BY_DIFFICULTY = "quiz-by-difficulty"
IMPROVEMENT_TIP = "improvement-tip"
IMPROVE_CONTENT = "improve-content"
COVER_LETTER = "cover-letter"

IMPROVE_CONTENT_MIN_CHARS = 20
IMPROVE_CONTENT_MAX_CHARS = 500
DEFAULT_QUIZ_COUNT = 25


def _require(params: Mapping[str, Any], *names: str) -> None:
	missing = [n for n in names if params.get(n) in (None, "")]
	if missing:
		raise InvalidInput(f"Missing prompt parameter(s): {', '.join(missing)}")


def _skills_clause(skills: Sequence[str] | None) -> str:
	if not skills:
		return ""
	return f" with expertise in {', '.join(skills)}"


def _industry_insights(params: Mapping[str, Any]) -> str:
	_require(params, "industry")
	return (
		f"Analyze the current state of the {params['industry']} industry and provide insights in ONLY the following JSON format without any additional notes or explanations:\n"
		"{\n"
		'  "salaryRanges": [\n'
		'    { "role": "string", "min": number, "max": number, "median": number, "location": "string" }\n'
		"  ],\n"
		'  "growthRate": number,\n'
		'  "demandLevel": "High" | "Medium" | "Low",\n'
		'  "topSkills": ["skill1", "skill2"],\n'
		'  "marketOutlook": "Positive" | "Neutral" | "Negative",\n'
		'  "keyTrends": ["trend1", "trend2"],\n'
		'  "recommendedSkills": ["skill1", "skill2"]\n'
		"}\n\n"
		"IMPORTANT: Return ONLY the JSON. No additional text, notes, or markdown formatting.\n"
		"Include at least 5 common roles for salary ranges.\n"
		"Growth rate should be a percentage.\n"
		"Include at least 5 skills and trends.\n"
	)


_QUESTION_REQUIREMENTS = (
	"Each question should have:\n"
	"- Clear, concise question text\n"
	"- 4 distinct answer options (A, B, C, D)\n"
	"- Correct answer marked (the correctAnswer value must be copied exactly from one of the options)\n"
	"- Detailed explanation of why the answer is correct\n"
)


def _quiz_mixed(params: Mapping[str, Any]) -> str:
	_require(params, "industry")
	count = params.get("count") or DEFAULT_QUIZ_COUNT
	excluded = [q for q in (params.get("excludeQuestions") or []) if q]
	exclusion = ""
	if excluded:
		exclusion = (
			"IMPORTANT: Do NOT repeat any of these previous questions:\n"
			+ "\n".join(excluded)
			+ "\n\n"
		)
	return (
		f"Generate {count} technical interview questions for a {params['industry']} professional"
		f"{_skills_clause(params.get('skills'))}.\n\n"
		"Each question should be multiple choice with 4 options.\n\n"
		+ exclusion
		+ "Include a mix of difficulty levels:\n"
		"- 40% Easy (fundamental concepts, basic knowledge)\n"
		"- 40% Medium (practical application, intermediate concepts)\n"
		"- 20% Hard (advanced topics, complex scenarios, edge cases)\n\n"
		+ _QUESTION_REQUIREMENTS
		+ "- Difficulty level (easy, medium, hard)\n\n"
		"Return the response in this JSON format only, no additional text:\n"
		"{\n"
		'  "questions": [\n'
		"    {\n"
		'      "question": "string",\n'
		'      "options": ["string", "string", "string", "string"],\n'
		'      "correctAnswer": "string",\n'
		'      "explanation": "string",\n'
		'      "difficulty": "easy|medium|hard",\n'
		"      \"category\": \"string (e.g., 'Core Concepts', 'Best Practices', 'Problem Solving', 'Industry Trends')\"\n"
		"    }\n"
		"  ]\n"
		"}\n"
	)


def _quiz_by_difficulty(params: Mapping[str, Any]) -> str:
	_require(params, "industry", "difficulty", "count")
	difficulty = params["difficulty"]
	if difficulty not in DIFFICULTIES:
		raise InvalidInput(f"Difficulty must be one of: {', '.join(DIFFICULTIES)}")
	count = params["count"]
	if not isinstance(count, int) or count < 1:
		raise InvalidInput("Question count must be a positive integer")
	return (
		f"Generate {count} {difficulty} difficulty technical interview questions for a {params['industry']} professional"
		f"{_skills_clause(params.get('skills'))}.\n\n"
		"Each question should be multiple choice with 4 options.\n\n"
		"Difficulty guidelines:\n"
		"- Easy: Fundamental concepts, basic knowledge, definitions\n"
		"- Medium: Practical application, intermediate concepts, common scenarios\n"
		"- Hard: Advanced topics, complex scenarios, edge cases, optimization\n\n"
		+ _QUESTION_REQUIREMENTS
		+ "- Category (e.g., 'Core Concepts', 'Best Practices', 'Problem Solving', 'Industry Trends')\n\n"
		"Return the response in this JSON format only, no additional text:\n"
		"{\n"
		'  "questions": [\n'
		"    {\n"
		'      "question": "string",\n'
		'      "options": ["string", "string", "string", "string"],\n'
		'      "correctAnswer": "string",\n'
		'      "explanation": "string",\n'
		f'      "difficulty": "{difficulty}",\n'
		'      "category": "string"\n'
		"    }\n"
		"  ]\n"
		"}\n"
	)


def _improvement_tip(params: Mapping[str, Any]) -> str:
	_require(params, "industry")
	wrong = params.get("wrongQuestions") or []
	if not wrong:
		raise InvalidInput("An improvement tip needs at least one missed question")
	blocks = []
	for q in wrong:
		blocks.append(
			f"Question: \"{q.get('question', '')}\"\n"
			f"Correct Answer: \"{q.get('correctAnswer', '')}\"\n"
			f"User Answer: \"{q.get('userAnswer') or ''}\"\n"
			f"Difficulty: {q.get('difficulty') or 'medium'}"
		)
	return (
		f"The user got the following {params['industry']} technical interview questions wrong:\n\n"
		+ "\n\n".join(blocks)
		+ "\n\n"
		"Based on these mistakes, provide a concise, specific improvement tip.\n"
		"Focus on the knowledge gaps revealed by these wrong answers.\n"
		"Keep the response under 2 sentences and make it encouraging.\n"
		"Don't explicitly mention the mistakes, instead focus on what to learn/practice.\n"
		"Consider the difficulty levels when giving advice.\n"
	)


def check_improvable_content(text: Any) -> str:
	if not isinstance(text, str) or len(text.strip()) < IMPROVE_CONTENT_MIN_CHARS:
		raise InvalidInput(f"Please enter at least {IMPROVE_CONTENT_MIN_CHARS} characters to improve.")
	if len(text) > IMPROVE_CONTENT_MAX_CHARS:
		raise InvalidInput(f"Demo is limited to {IMPROVE_CONTENT_MAX_CHARS} characters.")
	return text


def _improve_content(params: Mapping[str, Any]) -> str:
	text = check_improvable_content(params.get("text"))
	return (
		"As an expert resume writer, improve the following description.\n"
		"Make it more impactful and quantifiable.\n"
		f"Current content: \"{text}\"\n\n"
		"Requirements:\n"
		"1. Use action verbs.\n"
		"2. Sound professional and achievement-oriented.\n"
		"3. Keep it concise but detailed.\n"
		"4. Focus on achievements over responsibilities.\n\n"
		"Format the response as a single paragraph without any additional text or explanations.\n"
	)


def _cover_letter(params: Mapping[str, Any]) -> str:
	_require(params, "jobTitle", "companyName", "jobDescription")
	skills = params.get("skills") or []
	return (
		f"Write a professional cover letter for a {params['jobTitle']} position at {params['companyName']}.\n\n"
		"About the candidate:\n"
		f"- Industry: {params.get('industry') or 'Not specified'}\n"
		f"- Years of Experience: {params.get('experience') if params.get('experience') is not None else 'Not specified'}\n"
		f"- Skills: {', '.join(skills) if skills else 'Not specified'}\n"
		f"- Professional Background: {params.get('bio') or 'Not specified'}\n\n"
		"Job Description:\n"
		f"{params['jobDescription']}\n\n"
		"Requirements:\n"
		"1. Use a professional, enthusiastic tone\n"
		"2. Highlight relevant skills and experience\n"
		"3. Show understanding of the company's needs\n"
		"4. Keep it concise (max 400 words)\n"
		"5. Use proper business letter formatting in markdown\n"
		"6. Include specific examples of achievements\n"
		"7. Relate candidate's background to job requirements\n\n"
		"Format the letter in markdown.\n"
	)


_TEMPLATES: Dict[str, Callable[[Mapping[str, Any]], str]] = {
	INDUSTRY_INSIGHTS: _industry_insights,
	QUIZ_MIXED: _quiz_mixed,
	QUIZ_BY_DIFFICULTY: _quiz_by_difficulty,
	IMPROVEMENT_TIP: _improvement_tip,
	IMPROVE_CONTENT: _improve_content,
	COVER_LETTER: _cover_letter,
}


def build_prompt(task_id: str, params: Mapping[str, Any]) -> str:
	"""Render the prompt for `task_id`.

	Raises InvalidInput for an unknown task or unusable parameters.
	"""
	template = _TEMPLATES.get(task_id)
	if template is None:
		raise InvalidInput(f"Unknown prompt template: {task_id}")
	return template(params)
