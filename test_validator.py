"""
Model output validation and fallbacks
"""

import json

import pytest

from careercoach.errors import GenerationFailed
from careercoach.schemas import IndustryInsights, QuizQuestionSet
from careercoach.services import fallbacks
from careercoach.services.validator import Variant, check, fallback_payload, strip_fences, validate

from conftest import insights_json, make_question, quiz_json


def test_strip_fences_removes_markdown_markers():
    assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_fences("```\nplain\n```") == "plain"


def test_fenced_insights_are_parsed():
    result = check("```json\n" + insights_json() + "\n```", Variant.INDUSTRY_INSIGHTS)
    assert result.ok
    assert isinstance(result.value, IndustryInsights)
    assert result.value.demand_level == "High"


def test_insight_levels_are_normalized():
    result = check(insights_json(demandLevel="medium", marketOutlook="NEUTRAL"), Variant.INDUSTRY_INSIGHTS)
    assert result.ok
    assert result.value.demand_level == "Medium"
    assert result.value.market_outlook == "Neutral"


def test_json_wrapped_in_prose_is_recovered():
    result = check("Here you go:\n" + insights_json() + "\nHope this helps!", Variant.INDUSTRY_INSIGHTS)
    assert result.ok


@pytest.mark.parametrize("raw, kind", [
    ("", "empty"),
    ("```json\n```", "empty"),
    ("not json at all", "parse"),
    (json.dumps({"growthRate": 3}), "schema"),
])
def test_unusable_insights_are_rejected(raw, kind):
    result = check(raw, Variant.INDUSTRY_INSIGHTS)
    assert not result.ok
    assert result.kind == kind


def test_insights_with_too_few_salary_ranges_fall_back():
    raw = json.loads(insights_json())
    raw["salaryRanges"] = raw["salaryRanges"][:2]
    assert not check(json.dumps(raw), Variant.INDUSTRY_INSIGHTS).ok
    value = validate(json.dumps(raw), Variant.INDUSTRY_INSIGHTS)
    assert value == IndustryInsights.model_validate(fallbacks.INDUSTRY_INSIGHTS_FALLBACK)


def test_insights_with_too_few_top_skills_fall_back():
    value = validate(insights_json(topSkills=["Python"]), Variant.INDUSTRY_INSIGHTS)
    assert value.top_skills == fallbacks.INDUSTRY_INSIGHTS_FALLBACK["topSkills"]


def test_every_static_fallback_passes_its_own_check():
    assert check(json.dumps(fallbacks.INDUSTRY_INSIGHTS_FALLBACK), Variant.INDUSTRY_INSIGHTS).ok
    assert check(json.dumps(fallbacks.QUIZ_FALLBACK), Variant.QUIZ_QUESTION_SET).ok
    assert check(fallbacks.IMPROVEMENT_TIP_FALLBACK, Variant.IMPROVEMENT_TIP).ok
    assert check(fallbacks.IMPROVED_TEXT_FALLBACK, Variant.IMPROVED_TEXT).ok


def test_quiz_questions_get_ids_and_time_estimates():
    raw = quiz_json(make_question(1, "easy"), make_question(2, "medium"), make_question(3, "hard"))
    quiz = validate(raw, Variant.QUIZ_QUESTION_SET)
    assert [q.time_estimate for q in quiz.questions] == [30, 60, 90]
    ids = [q.id for q in quiz.questions]
    assert all(i.startswith("q_") for i in ids)
    assert [i.rsplit("_", 1)[1] for i in ids] == ["0", "1", "2"]


def test_missing_difficulty_uses_requested_default():
    question = make_question(1)
    del question["difficulty"]
    del question["category"]
    quiz = validate(quiz_json(question), Variant.QUIZ_QUESTION_SET, default_difficulty="hard")
    assert quiz.questions[0].difficulty == "hard"
    assert quiz.questions[0].category == "Technical"
    assert quiz.questions[0].time_estimate == 90


def test_malformed_questions_are_dropped_but_valid_ones_kept():
    bad_options = make_question(2)
    bad_options["options"] = ["A", "B", "C"]
    bad_answer = make_question(3, correct="Z")
    quiz = validate(quiz_json(make_question(1), bad_options, bad_answer), Variant.QUIZ_QUESTION_SET)
    assert [q.question for q in quiz.questions] == ["Question 1?"]


def test_bare_question_list_is_accepted():
    result = check(json.dumps([make_question(1)]), Variant.QUIZ_QUESTION_SET)
    assert result.ok
    assert isinstance(result.value, QuizQuestionSet)


def test_quiz_with_no_usable_questions_falls_back():
    bad = make_question(1, correct="nope")
    quiz = validate(quiz_json(bad), Variant.QUIZ_QUESTION_SET)
    assert len(quiz.questions) == len(fallbacks.QUIZ_FALLBACK["questions"])
    assert all(q.id and q.time_estimate for q in quiz.questions)


@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
def test_pinned_quiz_fallback_keeps_requested_difficulty(difficulty):
    quiz = validate("not json", Variant.QUIZ_QUESTION_SET, default_difficulty=difficulty, pinned=True)
    assert quiz.questions
    assert {q.difficulty for q in quiz.questions} == {difficulty}
    assert all(q.time_estimate == quiz.questions[0].time_estimate for q in quiz.questions)


def test_pinned_quiz_fallback_relabels_when_no_question_matches(monkeypatch):
    only_easy = [q for q in fallbacks.QUIZ_FALLBACK["questions"] if q["difficulty"] == "easy"]
    monkeypatch.setitem(fallbacks.QUIZ_FALLBACK, "questions", only_easy)
    quiz = fallback_payload(Variant.QUIZ_QUESTION_SET, default_difficulty="hard", pinned=True)
    assert len(quiz.questions) == len(only_easy)
    assert {q.difficulty for q in quiz.questions} == {"hard"}


def test_improvement_tip_falls_back_on_empty_output():
    assert validate("   ", Variant.IMPROVEMENT_TIP) == fallbacks.IMPROVEMENT_TIP_FALLBACK
    assert validate("Practice SQL joins.", Variant.IMPROVEMENT_TIP) == "Practice SQL joins."


def test_improved_text_is_collapsed_to_one_paragraph():
    assert validate("Led a team.\n\nShipped  fast.", Variant.IMPROVED_TEXT) == "Led a team. Shipped fast."


def test_caller_fallback_takes_precedence():
    assert validate("", Variant.IMPROVED_TEXT, fallback="original text") == "original text"


def test_cover_letter_has_no_fallback():
    assert check("Dear Hiring Manager,", Variant.COVER_LETTER).ok
    with pytest.raises(GenerationFailed):
        validate("", Variant.COVER_LETTER)
    with pytest.raises(GenerationFailed):
        fallback_payload(Variant.COVER_LETTER)


@pytest.mark.parametrize("raw", [
    "definitely not json",
    json.dumps({"items": []}),
    json.dumps({"questions": []}),
])
def test_unusable_quiz_output_yields_the_static_quiz(raw):
    quiz = validate(raw, Variant.QUIZ_QUESTION_SET)
    expected = [q["question"] for q in fallbacks.QUIZ_FALLBACK["questions"]]
    assert [q.question for q in quiz.questions] == expected
