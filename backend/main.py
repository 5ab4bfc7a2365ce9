"""Main entry point for the PENS admissions RAG chatbot API."""
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import PORT, CORS_ORIGINS, ENVIRONMENT, GROQ_MODEL, LOG_LEVEL, LOG_FORMAT, HEALTH_CHECK_TIMEOUT
from logger import setup_logging
from models.api import ChatRequest, ChatResponse, ErrorResponse, HealthResponse, ServiceStatus, Source
from services.chat_service import ChatService
from services.embedding_model import EmbeddingModel
from services.errors import GenerationError
from services.llm_client import LLMClient
from services.response_composer import ResponseComposer
from services.retrieval_engine import RetrievalEngine
from services.vector_store import VectorStore

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Terjadi kesalahan pada server. Silakan coba lagi."
GENERATION_APOLOGY = "Maaf, asisten sedang tidak dapat menjawab. Silakan coba lagi beberapa saat lagi."

app = FastAPI(
    title="PENS Admissions Chatbot",
    description="Retrieval-augmented FAQ chatbot for PENS admissions",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

# Initialize services (will be done on startup)
chat_service: ChatService = None
retrieval_engine: RetrievalEngine = None
llm_client: LLMClient = None
vector_store: VectorStore = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global chat_service, retrieval_engine, llm_client, vector_store

    setup_logging(LOG_LEVEL, LOG_FORMAT)
    logger.info("Initializing PENS chatbot services...")

    try:
        embedding_model = EmbeddingModel()
        vector_store = VectorStore()
        retrieval_engine = RetrievalEngine(vector_store, embedding_model)

        llm_client = LLMClient()
        composer = ResponseComposer(llm_client)

        chat_service = ChatService(retrieval_engine, composer)
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and latency of every request."""
    start_time = time.time()
    response = await call_next(request)
    logger.info(
        "Request completed",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "response_time_ms": int((time.time() - start_time) * 1000),
        }
    )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation failures as 400 with per-field messages."""
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]) or "body",
            "message": error.get("msg", "Invalid input"),
        }
        for error in exc.errors()
    ]
    logger.warning("Validation failed", extra={"errors": details, "path": request.url.path})
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Input tidak valid.", details=details).model_dump()
    )


@app.exception_handler(GenerationError)
async def generation_exception_handler(request: Request, exc: GenerationError):
    """Generation failures get a generic apology; detail stays in the logs."""
    logger.error(f"Generation error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content=ErrorResponse(error=GENERATION_APOLOGY).model_dump(exclude_none=True))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Never expose stack traces to clients."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=ErrorResponse(error=SERVER_ERROR_MESSAGE).model_dump(exclude_none=True))


@app.get("/")
async def root():
    """Service banner."""
    return {"message": "PENS Chatbot API", "version": "1.0.0", "docs": "/health"}


def _wait(future: Future, deadline: float, name: str, default):
    """Result of a health check future, or default once the deadline has passed."""
    try:
        return future.result(timeout=max(deadline - time.time(), 0))
    except FutureTimeoutError:
        logger.warning(f"{name} health check timed out after {HEALTH_CHECK_TIMEOUT}s")
        return default


@app.get("/health", response_model=HealthResponse)
def health():
    """
    Report the status of every dependency.

    Groq and Supabase are checked in parallel. All checks, including the
    document count, share one HEALTH_CHECK_TIMEOUT budget; a check still
    running when it expires counts as an error and is left to finish in
    the background. Returns 503 when any dependency is down.
    """
    start_time = time.time()
    deadline = start_time + HEALTH_CHECK_TIMEOUT

    executor = ThreadPoolExecutor(max_workers=3)
    try:
        groq_future = executor.submit(llm_client.ping, HEALTH_CHECK_TIMEOUT)
        store_future = executor.submit(vector_store.ping)
        groq_ok = _wait(groq_future, deadline, "Groq", False)
        store_ok = _wait(store_future, deadline, "Supabase", False)

        documents = 0
        if store_ok:
            documents = _wait(executor.submit(retrieval_engine.document_count), deadline, "Document count", 0)
    finally:
        executor.shutdown(wait=False)

    all_healthy = groq_ok and store_ok
    payload = HealthResponse(
        status="ok" if all_healthy else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        response_time_ms=int((time.time() - start_time) * 1000),
        services=ServiceStatus(
            groq="ok" if groq_ok else "error",
            supabase="ok" if store_ok else "error",
        ),
        documents=documents,
        environment=ENVIRONMENT,
        model=GROQ_MODEL,
    )

    logger.info("Health check", extra={"status": payload.status, "services": payload.services.model_dump()})
    return JSONResponse(status_code=200 if all_healthy else 503, content=payload.model_dump())


@app.post("/api/chat", response_model=ChatResponse)
def chat_endpoint(request: ChatRequest) -> ChatResponse:
    """
    Main chat endpoint.

    Flow: validate -> retrieve context -> generate grounded answer.
    Retrieval problems degrade to an ungrounded answer; generation
    problems return 503 with a generic apology.
    """
    history = [turn.to_turn() for turn in request.history]
    result = chat_service.handle_chat_turn(request.message, history)

    return ChatResponse(
        response=result.answer,
        sources=[Source(id=source.id, score=source.score) for source in result.sources],
        latency_ms=result.latency_ms
    )


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting PENS chatbot API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
