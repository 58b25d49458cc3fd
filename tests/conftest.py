import pytest

from review_insights.config import EngineConfig
from review_insights.models import RatingRecord


class FakeClient:
    """Stands in for CompletionClient; records prompts, returns or raises."""

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.prompts = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def make_record(name: str, value: float, **extra) -> RatingRecord:
    ratings = {d: value for d in ("collaboration", "communication", "respect", "transparency")}
    return RatingRecord(name=name, ratings=ratings, **extra)


@pytest.fixture
def rules_only():
    return EngineConfig(api_key="", ai_enabled=False, fallback_enabled=True)


@pytest.fixture
def ai_only():
    return EngineConfig(api_key="sk-test", ai_enabled=True, fallback_enabled=False)


@pytest.fixture
def hybrid():
    return EngineConfig(api_key="sk-test", ai_enabled=True, fallback_enabled=True)


@pytest.fixture
def unconfigured():
    return EngineConfig(api_key="", ai_enabled=False, fallback_enabled=False)
