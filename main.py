"""
Mill query harness.

Usage:
    python main.py "what were my transactions yesterday?" --show-routing
    python main.py "why am I spending so much?"
    python main.py "show my expenses and tell me if I'm overspending" --chat
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from models.routing import QueryResult
from services.chat import ChatAdapter
from services.router import build_query_router

LINE = "━" * 52


def format_report(query: str, result: QueryResult) -> str:
    lines = [
        LINE,
        "🤖 MILL - Smart Query Handler",
        LINE,
        f'\n🔍 User Query: "{query}"\n',
        LINE,
        "💬 RESPONSE:",
        LINE,
        "",
        result.response,
        "",
        LINE,
        "🔄 PROCESSING SUMMARY:",
        LINE,
        f"Handled by Mill: {'YES ✅' if result.handled else 'NO ❌'}",
        f"Target Agent: {result.routing.target_agent.value.upper()}",
        f"Data Type: {result.routing.data_needed.type.value}",
        f"Routing Source: {result.routing_source}",
        f"Escalation Needed: {'YES 🔄' if result.escalation_needed else 'NO'}",
    ]
    if result.escalation_context:
        lines.append("\nEscalation Details:")
        lines.append(f"  → Agent: {result.escalation_context.agent.value.upper()}")
        lines.append(f"  → Reason: {result.escalation_context.reason}")
    return "\n".join(lines)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Route a question to Mill or Chatur.")
    parser.add_argument("query", nargs="?", default="what were my transactions yesterday?")
    parser.add_argument("--chat", action="store_true", help="print only the chat reply")
    parser.add_argument("--show-routing", action="store_true", help="prefix the routing decision")
    parser.add_argument("--offline", action="store_true", help="skip the LLM router, regex routing only")
    parser.add_argument("--csv", default=None, help="transactions CSV export")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    router = build_query_router(csv_path=args.csv, offline=args.offline)

    if args.chat:
        print(f"\n💬 You: {args.query}\n")
        reply = await ChatAdapter(router).chat_query(args.query)
        print(f"🤖 Mill: {reply}\n")
        return 0

    result = await router.process_user_query(args.query, show_routing=args.show_routing)
    print(format_report(args.query, result))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        return asyncio.run(run(args))
    except Exception as e:
        print(f"\n❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
