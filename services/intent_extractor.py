# FILE: services/intent_extractor.py
"""
Regex intent extraction, used when the router agent's tool call is
missing or unusable.

HARD RULES:
- Pure: no LLM, no I/O, no module state
- Never raises
- First match wins inside a category; categories never short-circuit each other
"""

import math
import re
from re import Match, Pattern
from typing import Callable, List, Optional, Tuple

from core.intent import LoggedAmount, ParsedIntent, RecentCount

# -----------------------------
# Pattern building blocks
# -----------------------------
_CURRENCY = r"(?:inr|rs\.?|rupees?|₹)"
_AMOUNT = r"(\d+(?:\.\d+)?)"
_DESCRIPTION = r"(\S.*?)\s*(?:[.?!]|$)"

_EXPENSE_VERBS = r"(?:spent|paid|expensed?|bought)"
_INCOME_VERBS = r"(?:received|earned|got|income(?:\s+of)?)"


def _logged_amount(match: Match) -> Optional[LoggedAmount]:
    amount = float(match.group(1))
    # A long enough digit run overflows to inf
    if not math.isfinite(amount):
        return None
    return LoggedAmount(amount=amount, description=match.group(2).strip())


AmountRule = Tuple[Pattern, Callable[[Match], Optional[LoggedAmount]]]

# Ordered: the first rule that yields a value wins for its category.
# Matched against the original text, so description casing survives.
EXPENSE_PATTERNS: List[AmountRule] = [
    # "spent 500 rs on groceries", "paid ₹120 for coffee"
    (
        re.compile(
            rf"\b{_EXPENSE_VERBS}\s+{_CURRENCY}?\s*{_AMOUNT}\s*{_CURRENCY}?\s+(?:on|for)\s+{_DESCRIPTION}",
            re.IGNORECASE,
        ),
        _logged_amount,
    ),
    # "500 rs spent on groceries"
    (
        re.compile(
            rf"{_AMOUNT}\s*{_CURRENCY}\s+{_EXPENSE_VERBS}\s+(?:on|for)\s+{_DESCRIPTION}",
            re.IGNORECASE,
        ),
        _logged_amount,
    ),
    # "paid 300 to Swiggy"
    (
        re.compile(
            rf"\bpaid\s+{_CURRENCY}?\s*{_AMOUNT}\s*{_CURRENCY}?\s+to\s+{_DESCRIPTION}",
            re.IGNORECASE,
        ),
        _logged_amount,
    ),
]

INCOME_PATTERNS: List[AmountRule] = [
    # "received 2000 from freelance work"
    (
        re.compile(
            rf"\b{_INCOME_VERBS}\s+{_CURRENCY}?\s*{_AMOUNT}\s*{_CURRENCY}?\s+(?:from|for)\s+{_DESCRIPTION}",
            re.IGNORECASE,
        ),
        _logged_amount,
    ),
    # "2000 rs received from freelance work"
    (
        re.compile(
            rf"{_AMOUNT}\s*{_CURRENCY}\s+{_INCOME_VERBS}\s+(?:from|for)\s+{_DESCRIPTION}",
            re.IGNORECASE,
        ),
        _logged_amount,
    ),
]

# -----------------------------
# Keyword tests (normalized text)
# -----------------------------
SUMMARY_PATTERN = re.compile(
    r"\b(?:show|get|fetch|give me|what|display|list)\b"
    r".*\b(?:transaction|spen[dt]|expense|history|income|payment)"
)

RECENT_PATTERN = re.compile(r"\b(?:last|recent)\s+(\d+)\s+transactions?\b")

COACH_PATTERNS: List[Pattern] = [
    re.compile(r"\b(?:financial|money|budget)\s+(?:tips?|advice|guidance|help)\b"),
    re.compile(r"\b(?:coach\w*|chatur)\b"),
    re.compile(r"\b(?:advice|advise|budget\w*|guidance|recommend\w*|suggestions?)\b"),
    re.compile(r"\b(?:overspend\w*|too much)\b"),
    re.compile(r"\b(?:why (?:am|do|did|is|are)|how (?:can|do|should) i|should i)\b"),
    re.compile(r"\b(?:reduce|cut (?:down|back)|save (?:more|money))\b"),
]

INSIGHT_PATTERNS: List[Pattern] = [
    re.compile(r"\b(?:habits?|insights?|patterns?|trends?)\b"),
    re.compile(r"\banaly[sz]\w*"),
]


def _first_amount(rules: List[AmountRule], text: str) -> Optional[LoggedAmount]:
    for pattern, extract in rules:
        match = pattern.search(text)
        if match:
            value = extract(match)
            if value is not None:
                return value
    return None


def _any_match(patterns: List[Pattern], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def parse_user_intent(text: str) -> ParsedIntent:
    """
    Extract every intent the message carries.

    Money patterns run on the original text; keyword tests run on the
    lowercased, trimmed text.
    """
    original = text.strip()
    normalized = original.lower()

    query_recent = None
    recent = RECENT_PATTERN.search(normalized)
    if recent:
        count = int(recent.group(1))
        if count > 0:
            query_recent = RecentCount(count=count)

    return ParsedIntent(
        log_expense=_first_amount(EXPENSE_PATTERNS, original),
        log_income=_first_amount(INCOME_PATTERNS, original),
        query_summary=bool(SUMMARY_PATTERN.search(normalized)),
        query_recent=query_recent,
        request_coach=_any_match(COACH_PATTERNS, normalized),
        request_insights=_any_match(INSIGHT_PATTERNS, normalized),
    )


def has_intent(intent: ParsedIntent) -> bool:
    return intent.has_data_intent() or intent.has_coaching_intent()
