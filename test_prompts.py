"""
Prompt rendering: determinism, full lists and parameter checks
"""

import pytest

from careercoach.errors import InvalidInput
from careercoach.services import prompts


def test_same_inputs_render_identical_prompts():
    params = {"industry": "tech-software", "skills": ["Python", "Go"], "count": 10}
    first = prompts.build_prompt(prompts.QUIZ_MIXED, params)
    second = prompts.build_prompt(prompts.QUIZ_MIXED, dict(params))
    assert first == second
    assert "Generate 10 technical interview questions for a tech-software professional with expertise in Python, Go." in first


def test_exclusion_list_is_included_in_full():
    previous = [f"Previous question number {i}?" for i in range(60)]
    prompt = prompts.build_prompt(prompts.QUIZ_MIXED, {"industry": "finance", "excludeQuestions": previous})
    for question in previous:
        assert question in prompt
    assert "Do NOT repeat" in prompt


def test_mixed_quiz_without_history_has_no_exclusion_block():
    prompt = prompts.build_prompt(prompts.QUIZ_MIXED, {"industry": "finance"})
    assert "Do NOT repeat" not in prompt
    assert f"Generate {prompts.DEFAULT_QUIZ_COUNT} " in prompt


def test_difficulty_prompt_pins_the_requested_level():
    prompt = prompts.build_prompt(prompts.QUIZ_BY_DIFFICULTY, {"industry": "finance", "difficulty": "hard", "count": 5})
    assert "Generate 5 hard difficulty" in prompt
    assert '"difficulty": "hard"' in prompt


@pytest.mark.parametrize("params", [
    {"industry": "finance", "difficulty": "extreme", "count": 5},
    {"industry": "finance", "difficulty": "easy", "count": 0},
    {"difficulty": "easy", "count": 5},
])
def test_difficulty_prompt_rejects_bad_parameters(params):
    with pytest.raises(InvalidInput):
        prompts.build_prompt(prompts.QUIZ_BY_DIFFICULTY, params)


def test_improvement_tip_lists_every_missed_question():
    wrong = [
        {"question": "What is a mutex?", "correctAnswer": "A lock", "userAnswer": "A queue", "difficulty": "easy"},
        {"question": "What is CAP?", "correctAnswer": "A theorem", "userAnswer": None, "difficulty": "hard"},
    ]
    prompt = prompts.build_prompt(prompts.IMPROVEMENT_TIP, {"industry": "tech", "wrongQuestions": wrong})
    assert 'Question: "What is a mutex?"' in prompt
    assert 'User Answer: "A queue"' in prompt
    assert "Difficulty: hard" in prompt


def test_improvement_tip_needs_a_missed_question():
    with pytest.raises(InvalidInput):
        prompts.build_prompt(prompts.IMPROVEMENT_TIP, {"industry": "tech", "wrongQuestions": []})


@pytest.mark.parametrize("text", ["", "too short", "x" * 501, None])
def test_improve_content_enforces_length_bounds(text):
    with pytest.raises(InvalidInput):
        prompts.build_prompt(prompts.IMPROVE_CONTENT, {"text": text})


def test_improve_content_accepts_boundary_lengths():
    assert "x" * 20 in prompts.build_prompt(prompts.IMPROVE_CONTENT, {"text": "x" * 20})
    assert "y" * 500 in prompts.build_prompt(prompts.IMPROVE_CONTENT, {"text": "y" * 500})


def test_cover_letter_fills_missing_profile_fields():
    prompt = prompts.build_prompt(prompts.COVER_LETTER, {
        "jobTitle": "Data Engineer",
        "companyName": "Acme",
        "jobDescription": "Build pipelines.",
        "experience": 0,
    })
    assert "Data Engineer position at Acme" in prompt
    assert "- Years of Experience: 0" in prompt
    assert "- Skills: Not specified" in prompt


def test_unknown_task_is_rejected():
    with pytest.raises(InvalidInput):
        prompts.build_prompt("write-a-poem", {})
