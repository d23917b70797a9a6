# services/escalation.py

from typing import Optional, Union

from core.agents import AgentId
from core.intent import ParsedIntent
from models.routing import (
    DataType,
    EscalationContext,
    EscalationOutcome,
    RoutingDecision,
)

# ---------------------------------------------------------------------
# Reason labels (fixed text, never templated)
# ---------------------------------------------------------------------
COACHING_REQUEST_REASON = "Explicit coaching request"
INSIGHT_REQUEST_REASON = "Insight/analysis request"
MIXED_QUERY_REASON = "Mixed data and coaching query"

_INSIGHT_DATA_TYPES = {DataType.HABIT_ANALYSIS, DataType.SPENDING_PATTERNS}


def _reason_for_intent(intent: ParsedIntent) -> Optional[str]:
    if not intent.has_coaching_intent():
        return None
    if intent.has_data_intent():
        return MIXED_QUERY_REASON
    if intent.request_coach:
        return COACHING_REQUEST_REASON
    return INSIGHT_REQUEST_REASON


def _reason_for_decision(decision: RoutingDecision) -> Optional[str]:
    if decision.target_agent is AgentId.CHATUR:
        if decision.data_needed.type in _INSIGHT_DATA_TYPES:
            return INSIGHT_REQUEST_REASON
        return COACHING_REQUEST_REASON
    if decision.is_mixed:
        return MIXED_QUERY_REASON
    # Mill shows the data, Chatur does the habit analysis
    if decision.data_needed.type in _INSIGHT_DATA_TYPES:
        return INSIGHT_REQUEST_REASON
    return None


def evaluate(subject: Union[ParsedIntent, RoutingDecision]) -> EscalationOutcome:
    """
    Decide whether Chatur has to be involved, and why.

    Same input, same reason text. When several triggers fire, the
    reason follows the classifier's order: a query that also wants data
    is "mixed"; otherwise a coaching request outranks an insight request.
    """
    if isinstance(subject, ParsedIntent):
        reason = _reason_for_intent(subject)
    else:
        reason = _reason_for_decision(subject)

    if reason is None:
        return EscalationOutcome(escalation_needed=False)

    return EscalationOutcome(
        escalation_needed=True,
        escalation_context=EscalationContext(agent=AgentId.CHATUR, reason=reason),
    )
