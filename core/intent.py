# core/intent.py
from pydantic import BaseModel, Field
from typing import Optional


class LoggedAmount(BaseModel):
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    description: str = Field(..., min_length=1)


class RecentCount(BaseModel):
    count: int = Field(..., gt=0)


class ParsedIntent(BaseModel):
    """
    Everything the regex extractor found in one message.

    Every field is independent: a message may log an expense AND ask
    for coaching at the same time. This is a multi-flag record, not
    a choice between intents.
    """

    log_expense: Optional[LoggedAmount] = None
    log_income: Optional[LoggedAmount] = None
    query_summary: bool = False
    query_recent: Optional[RecentCount] = None
    request_coach: bool = False
    request_insights: bool = False

    def has_data_intent(self) -> bool:
        return bool(
            self.log_expense
            or self.log_income
            or self.query_summary
            or self.query_recent
        )

    def has_coaching_intent(self) -> bool:
        return self.request_coach or self.request_insights
