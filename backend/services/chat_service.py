"""Chat service: one retrieval-then-composition pass per user turn."""
import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from models.chunk import RetrievalResult, RetrievedSource
from models.conversation import ConversationTurn
from services.retrieval_engine import RetrievalEngine
from services.response_composer import ResponseComposer
from services.errors import RAGError
from config import RETRIEVAL_TOP_K

logger = logging.getLogger(__name__)


@dataclass
class ChatResult:
    """Answer for one chat turn."""
    answer: str
    sources: List[RetrievedSource]
    latency_ms: int


class ChatService:
    """Serve chat turns. Holds no per-request state, so it is shared across requests."""

    def __init__(self, retrieval_engine: RetrievalEngine, composer: ResponseComposer, top_k: int = RETRIEVAL_TOP_K):
        self.retrieval_engine = retrieval_engine
        self.composer = composer
        self.top_k = top_k

    def handle_chat_turn(self, message: str, history: Optional[List[ConversationTurn]] = None) -> ChatResult:
        """
        Answer a message.

        Grounding is best effort: any retrieval failure is logged and the
        turn is answered with an empty context.

        Raises:
            GenerationError: If the answer cannot be generated
        """
        start_time = time.time()
        logger.info(f"Processing chat: {message[:100]}")

        try:
            retrieval = self.retrieval_engine.retrieve(message, top_k=self.top_k)
        except RAGError as e:
            logger.error(f"Retrieval failed, answering without context: {e}")
            retrieval = RetrievalResult.empty()
        except Exception as e:
            logger.error(f"Unexpected retrieval error, answering without context: {e}", exc_info=True)
            retrieval = RetrievalResult.empty()

        answer = self.composer.compose(message, history or [], retrieval.context)

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Chat answered in {latency_ms}ms",
            extra={
                "message_length": len(message),
                "response_length": len(answer),
                "sources_count": len(retrieval.sources)
            }
        )
        return ChatResult(answer=answer, sources=retrieval.sources, latency_ms=latency_ms)
