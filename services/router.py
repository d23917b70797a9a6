# services/router.py

import os
from datetime import date
from functools import partial
from typing import Optional

from pydantic_ai import Agent

from agents.router_agent import build_router_agent
from config import TRANSACTIONS_CSV
from core.agents import build_agent_registry
from executors.transactions import TransactionExecutor
from models.routing import ToolCallRouting
from services.query_router import QueryRouter


async def get_route(router_agent: Agent, user_input: str) -> ToolCallRouting:
    """
    Uses the Router Agent to produce the routing tool call for a user input.
    Returns the structured output object.
    """
    result = await router_agent.run(
        f'Analyze and route this query: "{user_input}"\n\n'
        f"Current date: {date.today().isoformat()}"
    )
    return result.output


def build_query_router(csv_path: Optional[str] = None, offline: bool = False) -> QueryRouter:
    """
    Wire the router with its collaborators.

    The LLM tool-call path is only enabled when GOOGLE_API_KEY is set and
    offline is False; otherwise every query takes the regex path.
    """
    tool_caller = None
    if not offline and os.getenv("GOOGLE_API_KEY"):
        tool_caller = partial(get_route, build_router_agent())

    return QueryRouter(
        agents=build_agent_registry(),
        data_executor=TransactionExecutor(csv_path or TRANSACTIONS_CSV),
        tool_caller=tool_caller,
    )
