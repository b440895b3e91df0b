"""
Shared fixtures for the test generation suite
"""
import os
import sys

import pytest

# Flat layout: put the project root on the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep test runs from writing log files under logs/
os.environ.setdefault("LOG_TO_FILE", "false")

from core.models import FormInfo, InteractiveElement, WebsiteAnalysis  # noqa: E402
from core.settings import Settings  # noqa: E402
from core.test_router import TestRouter  # noqa: E402
from io_library.test_case_store import InMemoryTestCaseStore  # noqa: E402


@pytest.fixture
def settings():
    return Settings(log_to_file=False)


@pytest.fixture
def store():
    return InMemoryTestCaseStore()


@pytest.fixture
def router(settings, store):
    return TestRouter(settings=settings, store=store)


@pytest.fixture
def sample_analysis():
    return WebsiteAnalysis(
        url="https://example.com/login",
        interactive_elements=[
            InteractiveElement(tag="input", type="text", id="username", name="username"),
            InteractiveElement(tag="input", type="password", id="password", name="password"),
            InteractiveElement(tag="button", type="submit", text="Login", aria_label="Log in"),
        ],
        forms=[FormInfo(action="/login", method="post", fields=["username", "password"])],
    )
