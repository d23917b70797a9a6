# FILE: services/query_classifier.py
"""
Turns a router-agent tool call, or the regex intent when the tool call
is unusable, into a RoutingDecision.
"""

import logging
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ValidationError

from core.agents import AgentId
from core.errors import InvalidToolCallError
from core.intent import ParsedIntent
from models.routing import Confidence, DataNeeded, DataType, RoutingDecision
from services.escalation import MIXED_QUERY_REASON
from services.intent_extractor import parse_user_intent

logger = logging.getLogger("query_classifier")


@dataclass(frozen=True)
class ClassifiedQuery:
    decision: RoutingDecision
    source: Literal["tool_call", "fallback"]
    intent: Optional[ParsedIntent] = None


# ---------------------------------------------------------------------
# Primary path
# ---------------------------------------------------------------------
def decision_from_tool_call(tool_call: Any) -> RoutingDecision:
    """
    Validate a structured tool call into a RoutingDecision.

    Accepts a ToolCallRouting (or any pydantic model) or a plain mapping,
    either flat (data_type/parameters) or nested (data_needed).
    Raises InvalidToolCallError on anything malformed.
    """
    if isinstance(tool_call, BaseModel):
        payload = tool_call.model_dump()
    elif isinstance(tool_call, Mapping):
        payload = dict(tool_call)
    else:
        raise InvalidToolCallError(
            f"Unsupported tool call payload: {type(tool_call).__name__}"
        )

    data_needed = payload.get("data_needed") or {
        "type": payload.get("data_type"),
        "parameters": payload.get("parameters") or {},
    }

    try:
        return RoutingDecision(
            target_agent=payload.get("target_agent"),
            data_needed=data_needed,
            confidence=payload.get("confidence") or Confidence.MEDIUM,
            reasoning=payload.get("reasoning") or "Routed by tool call",
            should_escalate=payload.get("should_escalate") or False,
            escalation_reason=payload.get("escalation_reason"),
        )
    except ValidationError as e:
        raise InvalidToolCallError(f"Malformed routing tool call: {e}") from e


# ---------------------------------------------------------------------
# Fallback path
# ---------------------------------------------------------------------
def _most_specific_data(intent: ParsedIntent) -> DataNeeded:
    # recent > summary > expense > income
    if intent.query_recent:
        return DataNeeded(
            type=DataType.RECENT_TRANSACTIONS,
            parameters={"count": intent.query_recent.count},
        )
    if intent.query_summary:
        return DataNeeded(type=DataType.SPENDING_SUMMARY)
    if intent.log_expense:
        return DataNeeded(
            type=DataType.LOG_EXPENSE,
            parameters=intent.log_expense.model_dump(),
        )
    return DataNeeded(
        type=DataType.LOG_INCOME,
        parameters=intent.log_income.model_dump(),
    )


def decision_from_intent(intent: ParsedIntent) -> RoutingDecision:
    """
    Map a ParsedIntent to a RoutingDecision.

    Precedence:
    1. coaching/insight only  -> Chatur
    2. data + coaching        -> Mill, flagged for escalation (mixed)
    3. data only              -> Mill, most specific data type
    4. nothing                -> Mill, generic low-confidence lookup
    """
    wants_data = intent.has_data_intent()
    wants_coaching = intent.has_coaching_intent()

    if wants_coaching and not wants_data:
        return RoutingDecision(
            target_agent=AgentId.CHATUR,
            data_needed=DataNeeded(
                type=DataType.COACHING_ADVICE
                if intent.request_coach
                else DataType.HABIT_ANALYSIS
            ),
            confidence=Confidence.MEDIUM,
            reasoning="Query asks for coaching or insights without requesting transaction data",
        )

    if wants_data and wants_coaching:
        return RoutingDecision(
            target_agent=AgentId.MILL,
            data_needed=_most_specific_data(intent),
            confidence=Confidence.MEDIUM,
            reasoning="Query requests both data and advice - Mill answers first, then Chatur",
            should_escalate=True,
            escalation_reason=MIXED_QUERY_REASON,
        )

    if wants_data:
        return RoutingDecision(
            target_agent=AgentId.MILL,
            data_needed=_most_specific_data(intent),
            confidence=Confidence.HIGH,
            reasoning="Query requests transaction data",
        )

    return RoutingDecision(
        target_agent=AgentId.MILL,
        data_needed=DataNeeded(type=DataType.RAW_TRANSACTIONS),
        confidence=Confidence.LOW,
        reasoning="No recognizable intent; defaulting to a transaction lookup",
    )


# ---------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------
def classify_with_source(query: str, primary_tool_call: Any = None) -> ClassifiedQuery:
    if primary_tool_call is not None:
        try:
            return ClassifiedQuery(
                decision=decision_from_tool_call(primary_tool_call),
                source="tool_call",
            )
        except InvalidToolCallError as e:
            logger.warning(f"Discarding tool call, using regex fallback: {e}")

    intent = parse_user_intent(query)
    return ClassifiedQuery(
        decision=decision_from_intent(intent),
        source="fallback",
        intent=intent,
    )


def classify(query: str, primary_tool_call: Any = None) -> RoutingDecision:
    """
    Trust the tool call when it is present and well-formed, otherwise
    fall back to regex extraction exactly once.
    """
    return classify_with_source(query, primary_tool_call).decision
