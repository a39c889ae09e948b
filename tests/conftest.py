"""
Pytest Configuration and Fixtures
"""

import pytest
from pydantic import BaseModel

from tether import Context, Executor, MemoryStore, define_tool
from tether.events import EventBus

from fixtures.mock_providers import RecordingSubscriber


class EchoInput(BaseModel):
    text: str


async def _echo(input: EchoInput, handover=None):
    return {"status": "success", "data": input.text}


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore("test-session")


@pytest.fixture
def context(store) -> Context:
    return Context(store)


@pytest.fixture
def recorder() -> RecordingSubscriber:
    return RecordingSubscriber()


@pytest.fixture
def bus(recorder) -> EventBus:
    bus = EventBus()
    bus.add_subscriber(recorder)
    return bus


@pytest.fixture
def echo_tool():
    return define_tool("echo", "Echo the given text back", EchoInput, _echo)


@pytest.fixture
def executor(store, bus) -> Executor:
    return Executor(max_retries=3, store=store, events=bus)
