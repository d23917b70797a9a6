import asyncio
import pytest
from unittest.mock import AsyncMock

from core.agents import AgentId
from core.errors import DataServiceError
from executors.base import BaseExecutor
from models.routing import DataType, ToolCallRouting
from services.chat import ChatAdapter
from services.escalation import (
    COACHING_REQUEST_REASON,
    INSIGHT_REQUEST_REASON,
    MIXED_QUERY_REASON,
)


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
async def _never_returns(query):
    await asyncio.sleep(10)


# ---------------------------------------------------------------------
# DATA QUERIES
# ---------------------------------------------------------------------

def test_data_query_is_handled_by_mill(make_router, executor):
    router = make_router()

    result = asyncio.run(router.process_user_query("show my last 2 transactions"))

    assert result.handled is True
    assert result.escalation_needed is False
    assert result.escalation_context is None
    assert result.routing.data_needed.type is DataType.RECENT_TRANSACTIONS
    assert result.response == executor.message
    assert len(executor.calls) == 1


def test_unrecognized_query_is_answered_not_rejected(make_router, executor):
    result = asyncio.run(make_router().process_user_query("hmm"))

    assert result.handled is True
    assert result.routing.data_needed.type is DataType.RAW_TRANSACTIONS
    assert result.escalation_needed is False


# ---------------------------------------------------------------------
# COACHING / MIXED
# ---------------------------------------------------------------------

def test_pure_coaching_is_handed_off(make_router, executor):
    result = asyncio.run(make_router().process_user_query("why am I spending so much?"))

    assert result.handled is False
    assert result.routing.target_agent is AgentId.CHATUR
    assert result.escalation_needed is True
    assert result.escalation_context.reason == COACHING_REQUEST_REASON
    assert "Chatur" in result.response
    assert executor.calls == []


def test_mixed_query_answers_data_and_offers_escalation(make_router, executor):
    result = asyncio.run(
        make_router().process_user_query("spent 300 on snacks, any insight into my habits?")
    )

    assert result.handled is True
    assert result.escalation_needed is True
    assert result.escalation_context.reason == MIXED_QUERY_REASON
    assert result.escalation_context.data_provided == executor.data
    assert result.response.startswith(executor.message)
    assert 'Type "yes" to connect with Chatur' in result.response


# ---------------------------------------------------------------------
# PRIMARY PATH / FALLBACK
# ---------------------------------------------------------------------

def test_tool_call_is_used_when_available(make_router):
    tool_caller = AsyncMock(
        return_value=ToolCallRouting(target_agent="mill", data_type="spending_summary")
    )
    router = make_router(tool_caller=tool_caller)

    result = asyncio.run(router.process_user_query("why am I spending so much?"))

    tool_caller.assert_awaited_once_with("why am I spending so much?")
    assert result.routing_source == "tool_call"
    assert result.routing.target_agent is AgentId.MILL
    assert result.handled is True


def test_tool_call_failure_falls_back_once(make_router, failing_tool_caller):
    router = make_router(tool_caller=failing_tool_caller)

    result = asyncio.run(router.process_user_query("why am I spending so much?"))

    assert failing_tool_caller.await_count == 1
    assert result.routing_source == "fallback"
    assert result.handled is False


def test_tool_call_timeout_falls_back(make_router):
    router = make_router(tool_caller=_never_returns, router_timeout=0.01)

    result = asyncio.run(router.process_user_query("show my spending history"))

    assert result.routing_source == "fallback"
    assert result.routing.data_needed.type is DataType.SPENDING_SUMMARY


def test_malformed_tool_call_falls_back(make_router):
    tool_caller = AsyncMock(
        return_value={"target_agent": "mill", "data_type": "recent_transactions", "parameters": {"count": "many"}}
    )

    result = asyncio.run(make_router(tool_caller=tool_caller).process_user_query("show my last 4 transactions"))

    assert result.routing_source == "fallback"
    assert result.routing.data_needed.parameters == {"count": 4}


# ---------------------------------------------------------------------
# FAILURES
# ---------------------------------------------------------------------

def test_data_failure_raises_data_service_error(make_router, make_executor):
    router = make_router(data_executor=make_executor(error=ConnectionError("csv share offline")))

    with pytest.raises(DataServiceError, match="csv share offline"):
        asyncio.run(router.process_user_query("show my expenses"))


def test_data_timeout_raises_data_service_error(make_router):
    class SlowExecutor(BaseExecutor):
        async def execute(self, query, routing):
            await asyncio.sleep(10)

    router = make_router(data_executor=SlowExecutor(), data_timeout=0.01)

    with pytest.raises(DataServiceError):
        asyncio.run(router.process_user_query("show my expenses"))


# ---------------------------------------------------------------------
# PRESENTATION
# ---------------------------------------------------------------------

def test_show_routing_prefixes_report(make_router, executor):
    result = asyncio.run(make_router().process_user_query("show my expenses", show_routing=True))

    assert result.response.startswith("🎯 Query Routing Decision:")
    assert "Type: spending_summary" in result.response
    assert result.response.endswith(executor.message)


def test_chat_adapter_returns_only_text(make_router, executor):
    reply = asyncio.run(ChatAdapter(make_router()).chat_query("show my expenses"))

    assert reply == executor.message


def test_chat_adapter_propagates_errors(make_router, make_executor):
    router = make_router(data_executor=make_executor(error=RuntimeError("disk gone")))

    with pytest.raises(DataServiceError):
        asyncio.run(ChatAdapter(router).chat_query("show my expenses"))


def test_router_keeps_no_state_between_queries(make_router):
    router = make_router()

    first = asyncio.run(router.process_user_query("why am I spending so much?"))
    asyncio.run(router.process_user_query("show my expenses"))
    again = asyncio.run(router.process_user_query("why am I spending so much?"))

    assert first == again


def test_mill_habit_tool_call_shows_data_then_offers_chatur(make_router, executor):
    tool_caller = AsyncMock(
        return_value=ToolCallRouting(target_agent="mill", data_type="habit_analysis")
    )

    result = asyncio.run(make_router(tool_caller=tool_caller).process_user_query("show my spending habits"))

    assert result.handled is True
    assert result.escalation_needed is True
    assert result.escalation_context.reason == INSIGHT_REQUEST_REASON
    assert result.escalation_context.data_provided == executor.data
    assert result.response.startswith(executor.message)
    assert 'Type "yes" to connect with Chatur' in result.response
