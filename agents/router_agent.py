from typing import Optional

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

from config import GEMINI_MODEL_NAME, get_env_var
from models.routing import ToolCallRouting

ROUTER_SYSTEM_PROMPT = (
    "You are a smart query router for a financial assistance system with two agents.\n\n"
    "MILL (data agent): retrieves raw transaction data, lists transactions, gives "
    "factual amounts, dates and merchants, and notes new expenses or income. "
    "Answers WHAT questions: 'What did I spend last month?', 'Show my transactions'.\n\n"
    "CHATUR (coach agent): gives financial advice, analyzes spending habits and "
    "patterns, and makes recommendations. Answers WHY/HOW/SHOULD questions: "
    "'Why am I spending so much?', 'How can I reduce my expenses?'.\n\n"
    "Mixed queries ('Show my transactions and tell me if I'm overspending') go to "
    "mill with should_escalate=true.\n\n"
    "Data types:\n"
    "- recent_transactions: 'last N transactions' (parameters.count = N)\n"
    "- spending_summary: totals, lists or history of spending/income\n"
    "- log_expense / log_income: the user reports money spent or received "
    "(parameters.amount, parameters.description)\n"
    "- raw_transactions: any other data lookup\n"
    "- coaching_advice: recommendations and guidance (chatur)\n"
    "- habit_analysis / spending_patterns: behavioral insight (chatur, or mill "
    "with should_escalate=true when the user also asks to see the data)\n\n"
    "Lookups may narrow the data with parameters.filters: merchant, category, "
    "min_amount, max_amount, limit. Only include filters the user named.\n\n"
    "Call the output tool exactly once with your routing decision."
)


def build_router_agent(model: Optional[Model] = None) -> Agent:
    """
    Build the routing agent. Its structured output is the tool call the
    classifier trusts on the primary path.

    Without an explicit model, Gemini is used and GOOGLE_API_KEY must be set.
    """
    if model is None:
        provider = GoogleProvider(api_key=get_env_var("GOOGLE_API_KEY"))
        model = GoogleModel(GEMINI_MODEL_NAME, provider=provider)

    return Agent(
        model,
        system_prompt=ROUTER_SYSTEM_PROMPT,
        output_type=ToolCallRouting,
    )
