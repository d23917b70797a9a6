# FILE: models/routing.py
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from core.agents import AgentId
from core.intent import LoggedAmount, RecentCount


# -----------------------------
# Data requirement tags
# -----------------------------
class DataType(str, Enum):
    RAW_TRANSACTIONS = "raw_transactions"
    SPENDING_SUMMARY = "spending_summary"
    RECENT_TRANSACTIONS = "recent_transactions"
    LOG_EXPENSE = "log_expense"
    LOG_INCOME = "log_income"
    COACHING_ADVICE = "coaching_advice"
    HABIT_ANALYSIS = "habit_analysis"
    SPENDING_PATTERNS = "spending_patterns"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TransactionFilters(BaseModel):
    """Narrows a transaction lookup. Every field is optional."""

    merchant: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    min_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    max_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    limit: Optional[int] = Field(None, gt=0)

    @model_validator(mode="after")
    def check_range(self) -> "TransactionFilters":
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValueError("min_amount is greater than max_amount")
        return self


# Parameter contracts for the data types that carry values
_PARAMETER_SCHEMAS = {
    DataType.RECENT_TRANSACTIONS: RecentCount,
    DataType.LOG_EXPENSE: LoggedAmount,
    DataType.LOG_INCOME: LoggedAmount,
}


def _problems(e: ValidationError) -> str:
    return "; ".join(err["msg"] for err in e.errors())


# -----------------------------
# Data Needed
# -----------------------------
class DataNeeded(BaseModel):
    """
    What Mill has to look up. `parameters` may carry a `filters` mapping
    (see TransactionFilters) next to the type-specific values.
    """

    type: DataType
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_parameters(self) -> "DataNeeded":
        checked: Dict[str, Any] = {}

        schema = _PARAMETER_SCHEMAS.get(self.type)
        if schema is not None:
            try:
                checked.update(schema.model_validate(self.parameters).model_dump())
            except ValidationError as e:
                raise ValueError(
                    f"Invalid parameters for data type '{self.type.value}': {_problems(e)}"
                ) from e

        if "filters" in self.parameters:
            try:
                filters = TransactionFilters.model_validate(self.parameters["filters"] or {})
            except ValidationError as e:
                raise ValueError(f"Invalid filters: {_problems(e)}") from e
            checked["filters"] = filters.model_dump(exclude_none=True)

        self.parameters = {**self.parameters, **checked}
        return self


# -----------------------------
# Tool Call (Router agent → Classifier)
# -----------------------------
class ToolCallRouting(BaseModel):
    """
    Arguments of the router agent's routing tool call.

    Values stay loose here; the classifier checks them when it turns
    the call into a RoutingDecision.
    """

    target_agent: str = Field(..., description="'mill' for data retrieval, 'chatur' for coaching")
    data_type: str = Field(
        ...,
        description=(
            "One of raw_transactions, spending_summary, recent_transactions, "
            "log_expense, log_income, coaching_advice, habit_analysis, spending_patterns"
        ),
    )
    parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description=(
            "count for recent_transactions; amount and description for log_expense/log_income; "
            "optional filters {merchant, category, min_amount, max_amount, limit} for lookups"
        ),
    )
    confidence: str = Field("medium", description="high, medium or low")
    reasoning: str = Field("", description="Brief explanation of the routing")
    should_escalate: bool = Field(False, description="True when Mill answers first and Chatur should follow")
    escalation_reason: Optional[str] = Field(None)


# -----------------------------
# Routing Decision (Classifier → Router)
# -----------------------------
class RoutingDecision(BaseModel):
    target_agent: AgentId
    data_needed: DataNeeded
    confidence: Confidence = Confidence.MEDIUM
    reasoning: str = ""
    should_escalate: bool = False
    escalation_reason: Optional[str] = None

    @property
    def is_mixed(self) -> bool:
        """Data agent answers first, coach is offered afterwards."""
        return self.target_agent is AgentId.MILL and self.should_escalate


# -----------------------------
# Escalation
# -----------------------------
class EscalationContext(BaseModel):
    agent: AgentId = AgentId.CHATUR
    reason: str
    data_provided: Optional[Dict[str, Any]] = None


class EscalationOutcome(BaseModel):
    escalation_needed: bool = False
    escalation_context: Optional[EscalationContext] = None


# -----------------------------
# Data Answer (Data collaborator → Router)
# -----------------------------
class DataAnswer(BaseModel):
    message: str
    data: Optional[Dict[str, Any]] = None


# -----------------------------
# Query Result (Router → caller)
# -----------------------------
class QueryResult(BaseModel):
    handled: bool
    response: str
    routing: RoutingDecision
    escalation_needed: bool = False
    escalation_context: Optional[EscalationContext] = None
    routing_source: Literal["tool_call", "fallback"] = "fallback"
