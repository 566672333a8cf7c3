"""Shared fixtures: a scripted completion client and a seeded store."""

import asyncio

import pytest

from support_chat.repositories import MemoryStorage, seed_demo_data
from support_chat.services.completion import CompletionService

from tests.helpers import FakeCompletionClient


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def completion_service(fake_client):
    return CompletionService(client=fake_client, timeout=5)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def seeded_storage():
    storage = MemoryStorage()
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(seed_demo_data(storage))
    finally:
        loop.close()
    return storage
