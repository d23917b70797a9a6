from datetime import date, timedelta
from typing import Callable, Optional

from executors.base import BaseExecutor
from models.routing import DataAnswer, DataType, RoutingDecision
from services.transaction_reader import (
    filter_transactions,
    format_transaction_summary,
    read_transactions_from_csv,
    resolve_filters,
    resolve_period,
    resolve_transaction_type,
    summarize,
)

# Lookups that name no period cover the last 30 days
DEFAULT_LOOKBACK_DAYS = 30


class TransactionExecutor(BaseExecutor):
    """
    Answers Mill data requests from the transactions CSV export.
    Read-only: reported expenses and income are acknowledged, never written.
    """

    def __init__(self, csv_path: str, today: Optional[Callable[[], date]] = None):
        self.csv_path = csv_path
        self.today = today or date.today

    async def execute(self, query: str, routing: RoutingDecision) -> DataAnswer:
        data_type = routing.data_needed.type
        params = routing.data_needed.parameters

        if data_type in (DataType.LOG_EXPENSE, DataType.LOG_INCOME):
            kind = "an expense" if data_type is DataType.LOG_EXPENSE else "income"
            return DataAnswer(
                message=(
                    f"Got it! I noted {kind} of ₹{params['amount']:.2f} "
                    f"for {params['description']}. 📝"
                ),
                data={"type": data_type.value, **params},
            )

        records = read_transactions_from_csv(self.csv_path)

        # Filters named by the tool call win over ones read from the text
        filters = {**resolve_filters(query, records), **params.get("filters", {})}

        if data_type is DataType.RECENT_TRANSACTIONS:
            selected = filter_transactions(records, **filters)[: params["count"]]
        else:
            today = self.today()
            period = resolve_period(query, today)
            if period is None and data_type is DataType.RAW_TRANSACTIONS:
                period = (today - timedelta(days=DEFAULT_LOOKBACK_DAYS - 1), today)
            start, end = period if period else (None, None)
            selected = filter_transactions(
                records,
                start=start,
                end=end,
                tx_type=resolve_transaction_type(query),
                **filters,
            )

        summary = summarize(selected)
        data = summary.model_dump(mode="json", exclude={"transactions"})
        if filters:
            data["filters"] = filters
        return DataAnswer(message=format_transaction_summary(summary), data=data)
