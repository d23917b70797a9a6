# app.py
import logging
import json
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from asyncio import Lock

from config import DEBUG, PORT
from core.agents import AgentId
from core.errors import DataServiceError
from services.chat import ChatAdapter
from services.query_router import QueryRouter
from services.router import build_query_router


# -----------------------------
# Structured Logging Setup
# -----------------------------
class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "time": self.formatTime(record, self.datefmt),
                "level": record.levelname,
                "name": record.name,
                "message": record.getMessage(),
                "exception": record.exc_text,
            }
        )


logger = logging.getLogger("mill_router_api")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(JSONFormatter())
if not logger.handlers:
    logger.addHandler(handler)

# -----------------------------
# FastAPI App
# -----------------------------
app = FastAPI(title="Mill Query Router API", version="1.0")

# -----------------------------
# Metrics
# -----------------------------
metrics_lock = Lock()
request_counters = {
    "mill": 0,
    "chatur": 0,
    "escalations": 0,
    "total": 0,
    "errors": 0,
}

# -----------------------------
# Pydantic Models
# -----------------------------
class QueryBody(BaseModel):
    text: str
    show_routing: bool = False


class ChatBody(BaseModel):
    text: str

# -----------------------------
# Failure envelope
# -----------------------------
def failure(status_code: int, error_type: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"type": error_type, "message": message}},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return failure(exc.status_code, "http_error", str(exc.detail))

# -----------------------------
# Startup
# -----------------------------
@app.on_event("startup")
async def startup():
    # Tests may install their own router before startup
    if getattr(app.state, "query_router", None) is None:
        app.state.query_router = build_query_router()
        logger.info("✅ Query router ready")


def get_query_router(request: Request) -> QueryRouter:
    router = getattr(request.app.state, "query_router", None)
    if router is None:
        raise HTTPException(status_code=503, detail="Query router unavailable")
    return router


async def _count_error() -> None:
    async with metrics_lock:
        request_counters["errors"] += 1

# -----------------------------
# API Endpoints
# -----------------------------
@app.get("/")
async def root():
    return {"message": "Mill query router is running."}


@app.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    router = getattr(request.app.state, "query_router", None)
    return {
        "status": "ok" if router is not None else "starting",
        "llm_routing": bool(router is not None and router.tool_caller is not None),
    }


@app.get("/metrics")
async def metrics() -> Dict[str, Any]:
    async with metrics_lock:
        return request_counters.copy()


@app.post("/query")
async def process_query(body: QueryBody, request: Request):
    router = get_query_router(request)
    async with metrics_lock:
        request_counters["total"] += 1

    logger.info(f"[REQUEST_START] /query text_length={len(body.text)}")
    try:
        result = await router.process_user_query(body.text, show_routing=body.show_routing)
    except DataServiceError as e:
        await _count_error()
        logger.exception(f"[DATA_ERROR] {e}")
        return failure(502, "data_service_error", str(e))
    except Exception as e:
        await _count_error()
        logger.exception(f"[ERROR] exception={e}")
        return failure(500, "internal_error", str(e) if DEBUG else "An unexpected error occurred")

    async with metrics_lock:
        key = "mill" if result.routing.target_agent is AgentId.MILL else "chatur"
        request_counters[key] += 1
        if result.escalation_needed:
            request_counters["escalations"] += 1

    return result.model_dump(mode="json")


@app.post("/chat")
async def chat(body: ChatBody, request: Request):
    router = get_query_router(request)
    async with metrics_lock:
        request_counters["total"] += 1

    try:
        reply = await ChatAdapter(router).chat_query(body.text)
    except DataServiceError as e:
        await _count_error()
        logger.exception(f"[DATA_ERROR] {e}")
        return failure(502, "data_service_error", str(e))
    except Exception as e:
        await _count_error()
        logger.exception(f"[ERROR] exception={e}")
        return failure(500, "internal_error", str(e) if DEBUG else "An unexpected error occurred")

    return {"message": reply}


# -----------------------------
# Entrypoint
# -----------------------------
import uvicorn

if __name__ == "__main__":
    uvicorn.run("API_LAYER.app:app", host="0.0.0.0", port=PORT, workers=1)
