"""Embedding model integration with Hugging Face Inference API."""
import time
import logging
from enum import Enum
from typing import Any, List
import httpx

from services.errors import EmbeddingError
from config import HUGGINGFACE_API_KEY, EMBEDDING_MODEL

logger = logging.getLogger(__name__)


class EmbeddingMode(str, Enum):
    """Embedding task type. Chunks and queries are embedded asymmetrically."""
    DOCUMENT = "RETRIEVAL_DOCUMENT"
    QUERY = "RETRIEVAL_QUERY"


# Input prefixes expected by the e5 model family
MODE_PREFIXES = {
    EmbeddingMode.DOCUMENT: "passage: ",
    EmbeddingMode.QUERY: "query: ",
}


class EmbeddingModel:
    """Wrapper for Hugging Face Inference API embedding model."""

    def __init__(
        self,
        api_key: str = HUGGINGFACE_API_KEY,
        model_name: str = EMBEDDING_MODEL,
        max_retries: int = 5,
        initial_delay: float = 5.0,
        timeout: float = 60.0
    ):
        """
        Initialize the embedding model client.

        Args:
            api_key: Hugging Face API key
            model_name: Model identifier (default: intfloat/multilingual-e5-base)
            max_retries: Maximum attempts while the model is loading (HTTP 503)
            initial_delay: Initial delay in seconds for exponential backoff
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise ValueError("HUGGINGFACE_API_KEY environment variable is required")

        self.api_key = api_key
        self.model_name = model_name
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.timeout = timeout
        self.api_url = f"https://router.huggingface.co/hf-inference/models/{model_name}/pipeline/feature-extraction"

        logger.info(f"Initialized EmbeddingModel with model: {model_name}")

    def embed(self, text: str, mode: EmbeddingMode = EmbeddingMode.DOCUMENT) -> List[float]:
        """
        Generate embedding for a single text string.

        Args:
            text: Text to embed
            mode: DOCUMENT when indexing chunks, QUERY for user questions

        Returns:
            Embedding vector as list of floats

        Raises:
            ValueError: If text is empty
            EmbeddingError: If the provider request fails
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        payload_text = MODE_PREFIXES[EmbeddingMode(mode)] + text.strip()
        return self._parse_vector(self._request([payload_text]))

    def embed_query(self, text: str) -> List[float]:
        return self.embed(text, EmbeddingMode.QUERY)

    def embed_document(self, text: str) -> List[float]:
        return self.embed(text, EmbeddingMode.DOCUMENT)

    def _request(self, inputs: List[str]) -> Any:
        """
        Call the HF API.

        Only the provider's "model loading" state (503) is retried, with
        exponential backoff and a warning per attempt. Timeouts, network
        errors and other statuses fail immediately.

        Raises:
            EmbeddingError: If the request fails
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        payload = {
            "inputs": inputs,
            "options": {
                "wait_for_model": True  # Wait for model to load if sleeping
            }
        }

        delay = self.initial_delay

        for attempt in range(self.max_retries):
            start_time = time.time()
            try:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(
                        self.api_url,
                        headers=headers,
                        json=payload
                    )
            except httpx.TimeoutException as e:
                logger.error(f"Embedding request timed out after {self.timeout}s")
                raise EmbeddingError(f"Request timeout after {self.timeout}s", provider_name="huggingface") from e
            except httpx.RequestError as e:
                logger.error(f"Embedding network error: {e}")
                raise EmbeddingError(f"Network error: {e}", provider_name="huggingface") from e

            elapsed = time.time() - start_time

            # Handle 503 Service Unavailable (model loading)
            if response.status_code == 503:
                logger.warning(
                    f"Model loading (503) on attempt {attempt + 1}/{self.max_retries}. "
                    f"Retrying in {delay}s..."
                )
                if attempt < self.max_retries - 1:
                    time.sleep(delay)
                    delay = min(delay * 2, 60.0)  # Exponential backoff, max 60s
                    continue
                break

            if response.status_code == 429:
                logger.error("Rate limit exceeded for Hugging Face API")
                raise EmbeddingError("Rate limit exceeded. Please try again later.", provider_name="huggingface")

            if response.status_code == 401:
                logger.error("Authentication failed for Hugging Face API")
                raise EmbeddingError("Invalid API key", provider_name="huggingface")

            if response.status_code != 200:
                error_msg = f"API request failed with status {response.status_code}: {response.text}"
                logger.error(error_msg)
                raise EmbeddingError(error_msg, provider_name="huggingface")

            logger.debug(f"Generated embedding in {elapsed:.2f}s")
            return response.json()

        error_msg = f"Model failed to load after {self.max_retries} attempts"
        logger.error(error_msg)
        raise EmbeddingError(error_msg, provider_name="huggingface")

    @staticmethod
    def _parse_vector(data: Any) -> List[float]:
        """Extract a single flat vector from the API payload."""
        vector = data
        # Batched input comes back wrapped in an outer list
        while isinstance(vector, list) and vector and isinstance(vector[0], list):
            if len(vector) != 1:
                raise EmbeddingError(
                    f"Unexpected embedding payload shape (outer length {len(vector)})",
                    provider_name="huggingface"
                )
            vector = vector[0]

        if not isinstance(vector, list) or not vector or not all(isinstance(v, (int, float)) for v in vector):
            raise EmbeddingError("Malformed embedding payload", provider_name="huggingface")

        return [float(v) for v in vector]

    def warmup(self) -> bool:
        """
        Warm up the model with a dummy query to avoid cold start delays.

        Returns:
            True if warmup successful, False otherwise
        """
        try:
            logger.info("Warming up embedding model...")
            start_time = time.time()

            self.embed("warmup query", EmbeddingMode.QUERY)

            elapsed = time.time() - start_time
            logger.info(f"Model warmup completed in {elapsed:.1f}s")
            return True

        except (EmbeddingError, ValueError) as e:
            logger.error(f"Model warmup failed: {e}")
            return False
