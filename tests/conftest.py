import json

import pytest

from panim.db import MemoryBackend
from panim.errors import CollaboratorError
from panim.history import HistoryStore


def make_card(i=1):
    return {
        "title": f"כרטיס {i}",
        "element": "אש",
        "energy": "עולה",
        "score": 3,
        "sentences": ["א", "ב", "ג", "ד"],
        "tags": ["אור"],
    }


def make_reply(n_segments=2, n_cards=9):
    return {
        "analysis": [
            {"title": f"פרק {i}", "level": i, "content": f"תוכן {i}", "tags": ["מפתח"]}
            for i in range(1, n_segments + 1)
        ],
        "cards": [make_card(i) for i in range(1, n_cards + 1)],
    }


class FakeCollaborator:
    """Returns a canned reply (or raises) and remembers every request."""

    def __init__(self, reply=None, error=None):
        self.reply = json.dumps(make_reply(), ensure_ascii=False) if reply is None else reply
        self.error = error
        self.calls = []

    async def generate(self, query, system_instruction="", response_schema=None):
        self.calls.append((query, system_instruction, response_schema))
        if self.error is not None:
            raise self.error
        return self.reply


class Clock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def collaborator():
    return FakeCollaborator()


@pytest.fixture
def failing_collaborator():
    return FakeCollaborator(error=CollaboratorError("HTTP 503: unavailable"))


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def store(backend, clock):
    return HistoryStore(backend, clock=clock)
