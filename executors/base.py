from abc import ABC, abstractmethod

from models.routing import DataAnswer, RoutingDecision


class BaseExecutor(ABC):
    """
    Base contract for Mill's data-serving executors.
    Executors take the user text and its RoutingDecision and return a DataAnswer.
    No routing, no escalation decisions here.
    """

    @abstractmethod
    async def execute(self, query: str, routing: RoutingDecision) -> DataAnswer:
        pass
