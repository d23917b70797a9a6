# tests/conftest.py
import sys
import os
import tempfile
from pathlib import Path

# ---------------------------------------------------------
# Ensure project root is on PYTHONPATH BEFORE app imports
# ---------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep the router's file log out of the working tree
os.environ.setdefault("LOG_FILE", str(Path(tempfile.gettempdir()) / "query_router_tests.log"))

# ---------------------------------------------------------
# Now safe to import app modules
# ---------------------------------------------------------
import pytest
from unittest.mock import AsyncMock

from core.agents import build_agent_registry
from executors.base import BaseExecutor
from models.routing import DataAnswer
from services.query_router import QueryRouter


class StubExecutor(BaseExecutor):
    """Records every call and answers with a fixed message."""

    def __init__(self, message="Here's what I found! 📊", data=None, error=None):
        self.message = message
        self.data = data if data is not None else {"total_transactions": 2}
        self.error = error
        self.calls = []

    async def execute(self, query, routing):
        self.calls.append((query, routing))
        if self.error is not None:
            raise self.error
        return DataAnswer(message=self.message, data=self.data)


@pytest.fixture
def agents():
    return build_agent_registry()


@pytest.fixture
def make_executor():
    return StubExecutor


@pytest.fixture
def executor(make_executor):
    return make_executor()


@pytest.fixture
def make_router(agents, executor):
    def _make(tool_caller=None, data_executor=None, **kwargs):
        return QueryRouter(
            agents=agents,
            data_executor=data_executor or executor,
            tool_caller=tool_caller,
            **kwargs,
        )

    return _make


@pytest.fixture
def failing_tool_caller():
    return AsyncMock(side_effect=RuntimeError("LLM unavailable"))
