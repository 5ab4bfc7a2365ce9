"""LLM Client for Groq API integration."""
import time
from dataclasses import dataclass
from typing import List, Optional, Dict, Any
from groq import Groq
from groq import RateLimitError, AuthenticationError, APIError, APITimeoutError
import logging

from models.conversation import ConversationTurn, MODEL_ROLE
from config import GROQ_API_KEY, GROQ_MODEL, GENERATION_TEMPERATURE, MAX_OUTPUT_TOKENS, HEALTH_CHECK_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


@dataclass
class LLMError:
    """Structured error response from LLM operations."""
    code: str
    message: str
    details: Dict[str, Any]


class LLMClientError(Exception):
    """Custom exception for LLM client errors with structured error information."""

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)


class LLMClient:
    """Client for interfacing with Groq API for text generation."""

    def __init__(self, api_key: Optional[str] = None, model: str = GROQ_MODEL):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            model: Chat model used for generation
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.model = model
        # No SDK-level retries
        self.client = Groq(api_key=self.api_key, max_retries=0)
        logger.info(f"LLMClient initialized with model: {model}")

    @staticmethod
    def build_messages(
        system_instruction: str,
        history: List[ConversationTurn],
        prompt: str
    ) -> List[Dict[str, str]]:
        """
        Convert the canonical user/model turns into Groq chat messages.

        Args:
            system_instruction: Persona and rules
            history: Prior turns, oldest first
            prompt: Final user message

        Returns:
            Messages list: system, history, then the prompt
        """
        messages = [{"role": "system", "content": system_instruction}]
        for turn in history:
            messages.append({
                "role": "assistant" if turn.role == MODEL_ROLE else "user",
                "content": turn.text
            })
        messages.append({"role": "user", "content": prompt})
        return messages

    def generate(
        self,
        system_instruction: str,
        history: List[ConversationTurn],
        prompt: str,
        temperature: float = GENERATION_TEMPERATURE,
        max_tokens: int = MAX_OUTPUT_TOKENS
    ) -> LLMResponse:
        """
        Generate response using Groq API.

        Args:
            system_instruction: Persona and rules sent as the system message
            history: Prior conversation turns
            prompt: Complete prompt with context and question
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            LLMResponse with text, token counts, and latency

        Raises:
            LLMClientError: Structured error with code, message, and details
        """
        model = self.model
        start_time = time.time()

        try:
            logger.debug(f"Generating response with model: {model}")

            response = self.client.chat.completions.create(
                model=model,
                messages=self.build_messages(system_instruction, history, prompt),
                max_tokens=max_tokens,
                temperature=temperature
            )

            latency_ms = int((time.time() - start_time) * 1000)

            text = response.choices[0].message.content or ""

            tokens_input = response.usage.prompt_tokens
            tokens_output = response.usage.completion_tokens

            logger.info(
                f"Generated response: model={model}, "
                f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
                f"latency={latency_ms}ms"
            )

            return LLMResponse(
                text=text,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                latency_ms=latency_ms,
                model_used=model
            )

        except RateLimitError as e:
            raise self._error(
                "RATE_LIMIT_ERROR",
                "Rate limit exceeded. Please try again in a few moments.",
                e, start_time, retry_after=60
            )

        except AuthenticationError as e:
            raise self._error(
                "AUTHENTICATION_ERROR",
                "Authentication failed. Please check your API key.",
                e, start_time
            )

        except APITimeoutError as e:
            raise self._error("TIMEOUT_ERROR", "Request timed out. Please try again.", e, start_time)

        except APIError as e:
            raise self._error("API_ERROR", f"Groq API error: {e}", e, start_time)

        except Exception as e:
            raise self._error(
                "UNKNOWN_ERROR",
                f"Unexpected error during generation: {e}",
                e, start_time, error_type=type(e).__name__
            )

    def _error(self, code: str, message: str, exc: Exception, start_time: float, **details: Any) -> LLMClientError:
        """Log a provider failure and build the structured exception for it."""
        latency_ms = int((time.time() - start_time) * 1000)
        error = LLMError(
            code=code,
            message=message,
            details={
                "model": self.model,
                "latency_ms": latency_ms,
                "original_error": str(exc),
                **details
            }
        )
        logger.error(
            f"{code}: model={self.model}, latency={latency_ms}ms, error={exc}",
            exc_info=exc,
            extra={"error_code": error.code, "error_details": error.details}
        )
        return LLMClientError(error)

    def ping(self, timeout: float = HEALTH_CHECK_TIMEOUT) -> bool:
        """
        Check that the API is reachable and the key is valid.

        Lists models, which generates no tokens.

        Returns:
            True if the call succeeded within timeout
        """
        try:
            self.client.with_options(timeout=timeout, max_retries=0).models.list()
            return True
        except Exception as e:
            logger.warning(f"Groq health check failed: {e}")
            return False
