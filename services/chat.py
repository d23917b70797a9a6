from services.query_router import QueryRouter


class ChatAdapter:
    """
    Conversational front for the QueryRouter: text in, text out.
    Routing metadata is dropped; errors reach the caller unchanged.
    """

    def __init__(self, router: QueryRouter):
        self.router = router

    async def chat_query(self, message: str) -> str:
        result = await self.router.process_user_query(message, show_routing=False)
        return result.response
