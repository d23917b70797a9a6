# FILE: services/transaction_reader.py
"""
Read-only access to exported transactions (CSV) for the Mill data executor.

CSV columns:
owner_phone,transaction_id,datetime,date,time,amount,currency,type,
target_party,description,category,is_financial,medium
"""

import csv
import logging
import math
import os
import re
import datetime as dt
from datetime import date, timedelta
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger("transaction_reader")


# -----------------------------
# Models
# -----------------------------
class TransactionRecord(BaseModel):
    owner_phone: str = ""
    transaction_id: str
    datetime: dt.datetime
    date: dt.date
    time: str = ""
    amount: float = Field(..., ge=0)
    currency: str = "INR"
    type: Literal["debit", "credit"]
    target_party: str = ""
    description: str = ""
    category: str = ""
    is_financial: bool = True
    medium: str = ""

    @field_validator("datetime")
    @classmethod
    def as_naive_utc(cls, value: dt.datetime) -> dt.datetime:
        # Exports mix "...Z" ISO strings with naive local stamps; keep every value naive
        if value.tzinfo is not None:
            return value.astimezone(dt.timezone.utc).replace(tzinfo=None)
        return value


class TransactionSummary(BaseModel):
    total_transactions: int = 0
    total_debits: float = 0.0
    total_credits: float = 0.0
    net_amount: float = 0.0
    transactions: List[TransactionRecord] = Field(default_factory=list)
    date_range: Dict[str, str] = Field(default_factory=lambda: {"from": "N/A", "to": "N/A"})


# -----------------------------
# Reading
# -----------------------------
def read_transactions_from_csv(csv_path: str) -> List[TransactionRecord]:
    """
    Parse the CSV export, newest first. Rows that fail validation are skipped.
    A missing file means no transactions.
    """
    if not os.path.exists(csv_path):
        logger.warning(f"Transaction CSV not found: {csv_path}")
        return []

    records: List[TransactionRecord] = []
    with open(csv_path, newline="", encoding="utf-8") as fh:
        for line_no, row in enumerate(csv.DictReader(fh), start=2):
            try:
                records.append(TransactionRecord.model_validate(row))
            except ValidationError as e:
                logger.warning(f"Skipping malformed row {line_no} in {csv_path}: {e.error_count()} error(s)")

    records.sort(key=lambda r: r.datetime, reverse=True)
    return records


# -----------------------------
# Period resolution
# -----------------------------
def resolve_period(text: str, today: date) -> Optional[Tuple[date, date]]:
    """
    Map relative phrases to an inclusive (start, end) date range.
    Returns None when the text names no period.
    """
    text_lower = text.lower()

    if "yesterday" in text_lower:
        d = today - timedelta(days=1)
        return d, d

    if "today" in text_lower:
        return today, today

    if "last month" in text_lower or "previous month" in text_lower:
        last_month_end = today.replace(day=1) - timedelta(days=1)
        return last_month_end.replace(day=1), last_month_end

    if "this month" in text_lower or "current month" in text_lower:
        return today.replace(day=1), today

    days_match = re.search(r"last (\d+) days?", text_lower)
    if days_match and int(days_match.group(1)) > 0:
        days = int(days_match.group(1))
        return today - timedelta(days=days - 1), today

    if "week" in text_lower:
        return today - timedelta(days=6), today

    return None


def resolve_transaction_type(text: str) -> Literal["debit", "credit", "all"]:
    text_lower = text.lower()
    if re.search(r"\b(?:income|earned|received|credits?)\b", text_lower):
        return "credit"
    if re.search(r"\b(?:expenses?|spen[dt]|spending|pay|paid|debits?)\b", text_lower):
        return "debit"
    return "all"


# -----------------------------
# Filter resolution
# -----------------------------
_MONEY = r"(?:₹|rs\.?\s*|inr\s*)?(\d+(?:\.\d+)?)"

AMOUNT_BETWEEN = re.compile(rf"\bbetween\s+{_MONEY}\s+and\s+{_MONEY}")
AMOUNT_MIN = re.compile(rf"\b(?:over|above|more than|greater than|at least)\s+{_MONEY}")
AMOUNT_MAX = re.compile(rf"\b(?:under|below|less than|at most)\s+{_MONEY}")

_CATEGORY_CONTEXT = r"(?:spending|expenses?|transactions?|purchases?|bills?|payments?)"


def _finite(raw: str) -> Optional[float]:
    value = float(raw)
    return value if math.isfinite(value) else None


def _mentioned(name: str, text_lower: str) -> bool:
    return re.search(rf"\b{re.escape(name.lower())}\b", text_lower) is not None


def resolve_filters(text: str, records: List[TransactionRecord]) -> Dict[str, Any]:
    """
    Pull merchant, category and amount bounds out of the question.

    Merchants and categories are only recognized when they occur in the
    export, so "how much did I pay Swiggy?" needs a Swiggy row to filter on.
    A category must read as one ("on food", "food expenses").
    """
    text_lower = text.lower()
    filters: Dict[str, Any] = {}

    # Longest names first so "Amazon Pay" beats "Amazon"
    parties = sorted({r.target_party for r in records if len(r.target_party) >= 3}, key=len, reverse=True)
    for party in parties:
        if _mentioned(party, text_lower):
            filters["merchant"] = party
            break

    categories = sorted({r.category for r in records if r.category}, key=len, reverse=True)
    for category in categories:
        name = re.escape(category.lower())
        if re.search(rf"\b(?:on|for|in)\s+{name}\b|\b{name}\s+{_CATEGORY_CONTEXT}\b", text_lower):
            filters["category"] = category
            break

    between = AMOUNT_BETWEEN.search(text_lower)
    if between:
        low, high = _finite(between.group(1)), _finite(between.group(2))
        if low is not None and high is not None:
            filters["min_amount"], filters["max_amount"] = min(low, high), max(low, high)
    else:
        above = AMOUNT_MIN.search(text_lower)
        if above and _finite(above.group(1)) is not None:
            filters["min_amount"] = _finite(above.group(1))
        below = AMOUNT_MAX.search(text_lower)
        if below and _finite(below.group(1)) is not None:
            filters["max_amount"] = _finite(below.group(1))

    return filters


# -----------------------------
# Querying
# -----------------------------
def filter_transactions(
    records: List[TransactionRecord],
    start: Optional[date] = None,
    end: Optional[date] = None,
    tx_type: Literal["debit", "credit", "all"] = "all",
    merchant: Optional[str] = None,
    category: Optional[str] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    limit: Optional[int] = None,
) -> List[TransactionRecord]:
    """Merchant and category match case-insensitively on a substring; limit applies last."""
    merchant_lower = merchant.lower() if merchant else None
    category_lower = category.lower() if category else None

    filtered = []
    for record in records:
        if start and record.date < start:
            continue
        if end and record.date > end:
            continue
        if tx_type != "all" and record.type != tx_type:
            continue
        if min_amount is not None and record.amount < min_amount:
            continue
        if max_amount is not None and record.amount > max_amount:
            continue
        if merchant_lower and merchant_lower not in record.target_party.lower():
            continue
        if category_lower and category_lower not in record.category.lower():
            continue
        filtered.append(record)

    if limit:
        filtered = filtered[:limit]
    return filtered


def summarize(records: List[TransactionRecord]) -> TransactionSummary:
    total_debits = round(sum(r.amount for r in records if r.type == "debit"), 2)
    total_credits = round(sum(r.amount for r in records if r.type == "credit"), 2)

    date_range = {"from": "N/A", "to": "N/A"}
    if records:
        dates = [r.date for r in records]
        date_range = {"from": min(dates).isoformat(), "to": max(dates).isoformat()}

    return TransactionSummary(
        total_transactions=len(records),
        total_debits=total_debits,
        total_credits=total_credits,
        net_amount=round(total_credits - total_debits, 2),
        transactions=records,
        date_range=date_range,
    )


# -----------------------------
# Formatting
# -----------------------------
def format_transaction_summary(summary: TransactionSummary, max_items: int = 5) -> str:
    if summary.total_transactions == 0:
        return "I checked, but didn't find any transactions for that period. 🤔"

    lines = [
        "Here's what I found! 📊",
        "",
        f"Between {summary.date_range['from']} and {summary.date_range['to']}, "
        f"you had {summary.total_transactions} transactions:",
        "",
    ]

    if summary.total_debits > 0:
        lines.append(f"💸 You spent ₹{summary.total_debits:.2f}")
    if summary.total_credits > 0:
        lines.append(f"💰 You received ₹{summary.total_credits:.2f}")

    if summary.net_amount > 0:
        lines.append(f"\n✨ Great! You're up by ₹{summary.net_amount:.2f}")
    elif summary.net_amount < 0:
        lines.append(f"\nNet: -₹{abs(summary.net_amount):.2f}")

    lines.append("\nRecent activity:")
    for tx in summary.transactions[:max_items]:
        emoji = "🔴" if tx.type == "debit" else "🟢"
        action = "Paid" if tx.type == "debit" else "Got"
        party = ""
        if tx.target_party:
            party = f" {'to' if tx.type == 'debit' else 'from'} {tx.target_party}"
        lines.append(f"{emoji} {action} ₹{tx.amount:.2f}{party} on {tx.date.isoformat()}")

    if len(summary.transactions) > max_items:
        lines.append(f"... and {len(summary.transactions) - max_items} more")

    return "\n".join(lines)
