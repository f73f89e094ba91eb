import asyncio
import json

import pytest

from careercoach.services.coach_service import CoachService
from careercoach.services.credentials import CredentialResolver
from careercoach.services.llm_service import ModelResponse
from careercoach.services.store import JsonStore
from careercoach.utils.crypto import CredentialCipher


GEMINI_KEY = "AIzaSy" + "A" * 33


class FakeInvoker:
    """Scripted stand-in for the model invoker.

    Each call pops the next scripted response; the last one repeats.
    """

    def __init__(self, *responses, delay=None):
        self.responses = list(responses) or [ModelResponse.success("")]
        self.calls = []
        self.delay = delay

    async def invoke(self, credential, prompt):
        self.calls.append((credential, prompt))
        if self.delay is not None:
            await asyncio.sleep(self.delay)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, ModelResponse):
            return response
        return ModelResponse.success(response)


async def no_sleep(_seconds):
    return None


def make_question(n, difficulty="medium", correct="A", category="Technical"):
    return {
        "question": f"Question {n}?",
        "options": ["A", "B", "C", "D"],
        "correctAnswer": correct,
        "explanation": f"Because {n}.",
        "difficulty": difficulty,
        "category": category,
    }


def insights_json(**overrides):
    payload = {
        "salaryRanges": [
            {"role": "Engineer", "min": 80000, "max": 140000, "median": 110000, "location": "US"},
            {"role": "Senior Engineer", "min": 120000, "max": 190000, "median": 150000, "location": "US"},
            {"role": "Staff Engineer", "min": 160000, "max": 240000, "median": 200000, "location": "US"},
        ],
        "growthRate": 12.5,
        "demandLevel": "High",
        "topSkills": ["Python", "Cloud", "SQL"],
        "marketOutlook": "Positive",
        "keyTrends": ["AI adoption"],
        "recommendedSkills": ["MLOps"],
    }
    payload.update(overrides)
    return json.dumps(payload)


def quiz_json(*questions):
    return json.dumps({"questions": list(questions)})


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def store():
    return JsonStore(None)


@pytest.fixture
def cipher():
    return CredentialCipher("unit-test-secret")


def build_coach(store, invoker, cipher, shared="shared-service-key", clock=None):
    resolver = CredentialResolver(store, cipher=cipher, shared_credential=shared, provider="gemini")
    return CoachService(store, invoker, resolver, sleep=no_sleep, clock=clock)


async def onboard(store, cipher, user_id="user-a", industry="tech-software", api_key=GEMINI_KEY):
    await store.ensure_user(user_id, name="Test User")
    fields = {"industry": industry, "experience": 4, "bio": "Backend developer", "skills": ["Python", "SQL"]}
    if api_key:
        fields["api_key_ciphertext"] = cipher.encrypt(user_id, api_key)
    return await store.update_user(user_id, **fields)
