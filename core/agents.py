# core/agents.py
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple


class AgentId(str, Enum):
    """
    The agents a query can be routed to.
    """

    MILL = "mill"
    CHATUR = "chatur"

    def is_data_agent(self) -> bool:
        return self is AgentId.MILL

    def is_coach(self) -> bool:
        return self is AgentId.CHATUR


@dataclass(frozen=True)
class AgentProfile:
    agent_id: AgentId
    display_name: str
    role: str
    capabilities: Tuple[str, ...] = ()


AgentRegistry = Mapping[AgentId, AgentProfile]


def build_agent_registry() -> AgentRegistry:
    """
    Build the read-only agent mapping.

    Call once at process start and pass the result into the router.
    """
    return MappingProxyType(
        {
            AgentId.MILL: AgentProfile(
                agent_id=AgentId.MILL,
                display_name="Mill",
                role="transaction data assistant",
                capabilities=(
                    "Retrieving your transactions",
                    "Spending and income summaries",
                    "Noting new expenses and income",
                ),
            ),
            AgentId.CHATUR: AgentProfile(
                agent_id=AgentId.CHATUR,
                display_name="Chatur",
                role="financial coach",
                capabilities=(
                    "Understanding spending habits",
                    "Providing personalized advice",
                    "Helping with budgeting strategies",
                    "Analyzing behavioral patterns",
                ),
            ),
        }
    )
