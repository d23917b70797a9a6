import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

def get_env_var(name: str) -> str:
    """Get environment variable or raise a clear error if missing."""
    value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"❌ Missing required environment variable: {name}\n"
            f"👉 Did you copy .env.example to .env and fill in your keys?"
        )
    return value

# GOOGLE_API_KEY is read through get_env_var only when the router agent is
# built, so the regex fallback keeps working without it.
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-1.5-flash")

# Optional vars (with defaults)
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
PORT = int(os.getenv("PORT", "8000"))

TRANSACTIONS_CSV = os.getenv("TRANSACTIONS_CSV", os.path.join("data", "transactions.csv"))

# Seconds
ROUTER_TIMEOUT = float(os.getenv("ROUTER_TIMEOUT", "30"))
DATA_FETCH_TIMEOUT = float(os.getenv("DATA_FETCH_TIMEOUT", "45"))

LOG_FILE = os.getenv("LOG_FILE", "query_router.log")
