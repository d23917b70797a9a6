# FILE: services/query_router.py
"""
Query Router: tool-call routing with a one-shot regex fallback,
escalation evaluation and the Mill data lookup.
"""

import json
import logging
from asyncio import wait_for, TimeoutError
from typing import Any, Awaitable, Callable, Optional

from config import DATA_FETCH_TIMEOUT, LOG_FILE, ROUTER_TIMEOUT
from core.agents import AgentId, AgentRegistry
from core.errors import DataServiceError
from executors.base import BaseExecutor
from models.routing import (
    DataAnswer,
    DataType,
    EscalationOutcome,
    QueryResult,
    RoutingDecision,
)
from services.escalation import evaluate
from services.query_classifier import classify_with_source

# -----------------------------
# Logging Setup
# -----------------------------
logger = logging.getLogger("query_router")
logger.setLevel(logging.INFO)
if not logger.handlers:
    fh = logging.FileHandler(LOG_FILE)
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    fh.setFormatter(formatter)
    logger.addHandler(fh)

DIVIDER = "━" * 40

ToolCaller = Callable[[str], Awaitable[Any]]


# -----------------------------
# Formatting
# -----------------------------
def format_routing_decision(decision: RoutingDecision, outcome: EscalationOutcome) -> str:
    lines = [
        "🎯 Query Routing Decision:",
        f"   Target Agent: {decision.target_agent.value.upper()}",
        f"   Confidence: {decision.confidence.value}",
        f"   Reasoning: {decision.reasoning}",
        "",
        "📊 Data Requirements:",
        f"   Type: {decision.data_needed.type.value}",
    ]
    if decision.data_needed.parameters:
        lines.append(f"   Parameters: {json.dumps(decision.data_needed.parameters, ensure_ascii=False)}")

    if outcome.escalation_needed:
        lines.append("")
        lines.append("🔄 Escalation: YES")
        lines.append(f"   Reason: {outcome.escalation_context.reason}")

    return "\n".join(lines)


class QueryRouter:
    """
    Routes one user query to Mill or Chatur.

    Holds only injected collaborators; nothing is kept between calls.
    """

    def __init__(
        self,
        agents: AgentRegistry,
        data_executor: BaseExecutor,
        tool_caller: Optional[ToolCaller] = None,
        *,
        router_timeout: float = ROUTER_TIMEOUT,
        data_timeout: float = DATA_FETCH_TIMEOUT,
    ):
        self.agents = agents
        self.data_executor = data_executor
        self.tool_caller = tool_caller
        self.router_timeout = router_timeout
        self.data_timeout = data_timeout

    # -----------------------------
    # Collaborators
    # -----------------------------
    async def _primary_tool_call(self, query: str) -> Any:
        """Ask the router agent once. Any failure means 'no tool call'."""
        if self.tool_caller is None:
            return None
        try:
            return await wait_for(self.tool_caller(query), timeout=self.router_timeout)
        except TimeoutError:
            logger.warning(f"Router agent timed out after {self.router_timeout}s; using regex fallback")
        except Exception as e:
            logger.warning(f"Router agent failed ({e!r}); using regex fallback")
        return None

    async def _fetch_data(self, query: str, decision: RoutingDecision) -> DataAnswer:
        try:
            return await wait_for(
                self.data_executor.execute(query, decision),
                timeout=self.data_timeout,
            )
        except TimeoutError as e:
            logger.error(f"Data executor timed out after {self.data_timeout}s")
            raise DataServiceError("Transaction data lookup timed out") from e
        except Exception as e:
            logger.exception(f"Data executor failed: {e}")
            raise DataServiceError(f"Transaction data lookup failed: {e}") from e

    # -----------------------------
    # Messages
    # -----------------------------
    def _handoff_message(self, decision: RoutingDecision, reason: str) -> str:
        coach = self.agents[AgentId.CHATUR]
        topic = (
            "financial advice"
            if decision.data_needed.type is DataType.COACHING_ADVICE
            else "deeper insight into your spending"
        )
        capabilities = "\n".join(f"- {item}" for item in coach.capabilities)
        return (
            f"I understand you're looking for {topic}.\n\n"
            f"This type of question is best handled by {coach.display_name}, "
            f"our {coach.role}, who specializes in:\n"
            f"{capabilities}\n\n"
            f"Reason: {reason}\n\n"
            f"Would you like me to connect you with {coach.display_name}?"
        )

    def _escalation_offer(self, reason: str) -> str:
        coach = self.agents[AgentId.CHATUR]
        return (
            f"{DIVIDER}\n\n"
            f"📈 Want deeper insights?\n\n"
            f"{coach.display_name}, our {coach.role}, can pick this up ({reason}).\n\n"
            f'Type "yes" to connect with {coach.display_name} for financial coaching.'
        )

    # -----------------------------
    # Entry point
    # -----------------------------
    async def process_user_query(self, query: str, show_routing: bool = False) -> QueryResult:
        """
        1. Tool-call routing (primary), regex routing once on failure
        2. Escalation evaluation
        3. Mill answers data requests; pure coaching is handed to Chatur

        Raises DataServiceError when the data lookup fails.
        """
        logger.info(f"Routing query: {query}")

        tool_call = await self._primary_tool_call(query)
        classified = classify_with_source(query, tool_call)
        decision = classified.decision
        outcome = evaluate(classified.intent if classified.intent is not None else decision)

        logger.info(
            f"Routed to {decision.target_agent.value} "
            f"(data={decision.data_needed.type.value}, source={classified.source}, "
            f"escalate={outcome.escalation_needed})"
        )

        prefix = ""
        if show_routing:
            prefix = f"{format_routing_decision(decision, outcome)}\n\n{DIVIDER}\n\n"

        # Pure coaching: hand off, never answer on Chatur's behalf
        if decision.target_agent is AgentId.CHATUR:
            return QueryResult(
                handled=False,
                response=prefix + self._handoff_message(decision, outcome.escalation_context.reason),
                routing=decision,
                escalation_needed=True,
                escalation_context=outcome.escalation_context,
                routing_source=classified.source,
            )

        answer = await self._fetch_data(query, decision)
        response = prefix + answer.message
        context = outcome.escalation_context

        # Mixed: answer the data part, then offer Chatur
        if outcome.escalation_needed:
            response += "\n\n" + self._escalation_offer(context.reason)
            context = context.model_copy(update={"data_provided": answer.data})

        return QueryResult(
            handled=True,
            response=response,
            routing=decision,
            escalation_needed=outcome.escalation_needed,
            escalation_context=context,
            routing_source=classified.source,
        )
