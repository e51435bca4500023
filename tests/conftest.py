"""
Shared pytest configuration.

This file ensures the project root is on sys.path so that
`import completion_gateway` works consistently in all tests, and provides
the fakes most test modules need: a controllable clock, a small candidate
table and a scripted upstream client.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest


# Ensure project root is importable for test modules.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from completion_gateway.models import ModelCandidate, ModelCapability, TaskType, Usage  # noqa: E402
from completion_gateway.upstream import UpstreamCompletion, UpstreamError  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """
    Scripted upstream client.

    `outcomes` maps a model id to either a reply string or an exception to
    raise; models without an entry answer "reply from <model>".
    """

    def __init__(self, outcomes: Dict[str, Any] | None = None) -> None:
        self.outcomes: Dict[str, Any] = dict(outcomes or {})
        self.calls: List[Dict[str, Any]] = []

    @property
    def called_models(self) -> List[str]:
        return [call["model"] for call in self.calls]

    async def create_chat_completion(
        self,
        *,
        model: str,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> UpstreamCompletion:
        self.calls.append(
            {
                "model": model,
                "messages": [dict(m) for m in messages],
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        outcome = self.outcomes.get(model, f"reply from {model}")
        if isinstance(outcome, BaseException):
            raise outcome
        return UpstreamCompletion(
            content=outcome,
            usage=Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        )


def rate_limited(message: str = "Too Many Requests") -> UpstreamError:
    return UpstreamError(status_code=429, message=message)


def _candidate(model_id: str, priority: int) -> ModelCandidate:
    return ModelCandidate(
        id=model_id,
        name=model_id.upper(),
        rate_limit=100 * priority,
        priority=priority,
        max_tokens=512,
        capabilities=[ModelCapability.CHAT],
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def candidate_table() -> Dict[TaskType, tuple]:
    # Declared out of order on purpose; ranking sorts by priority.
    return {
        TaskType.TEXT_GENERATION: (
            _candidate("model-b", 2),
            _candidate("model-a", 1),
            _candidate("model-c", 3),
        ),
    }


@pytest.fixture
def make_upstream():
    def _make(outcomes: Dict[str, Any] | None = None) -> FakeUpstream:
        return FakeUpstream(outcomes)

    return _make


@pytest.fixture
def rate_limit_error():
    return rate_limited
