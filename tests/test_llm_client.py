"""Unit tests for LLMClient."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import httpx
import pytest
from unittest.mock import Mock, patch
from groq import RateLimitError, AuthenticationError, APIError, APITimeoutError
from models.conversation import ConversationTurn
from services.llm_client import LLMClient, LLMResponse, LLMClientError

GROQ_REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


def _groq_response(status_code):
    return httpx.Response(status_code, request=GROQ_REQUEST)


def _completion(text="Jawaban", prompt_tokens=100, completion_tokens=10):
    response = Mock()
    response.choices = [Mock(message=Mock(content=text))]
    response.usage = Mock(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
    return response


class TestLLMClient:
    """Test suite for LLMClient class."""

    @patch('services.llm_client.Groq')
    def test_initialization_with_api_key(self, mock_groq_class):
        """Test LLMClient initializes with provided API key."""
        client = LLMClient(api_key="test_key")

        assert client.api_key == "test_key"
        assert client.model == "llama-3.3-70b-versatile"
        mock_groq_class.assert_called_once_with(api_key="test_key", max_retries=0)

    def test_initialization_without_api_key_raises_error(self):
        """Test LLMClient raises error when no API key provided."""
        with patch('services.llm_client.GROQ_API_KEY', None):
            with pytest.raises(ValueError, match="GROQ_API_KEY must be provided"):
                LLMClient()

    def test_build_messages(self):
        """History roles map onto chat roles between system and prompt."""
        history = [
            ConversationTurn(role="user", parts=["Halo"]),
            ConversationTurn(role="model", parts=["Halo, ada yang bisa dibantu?"]),
        ]

        messages = LLMClient.build_messages("Kamu asisten PENS.", history, "Kapan SNBP?")

        assert messages == [
            {"role": "system", "content": "Kamu asisten PENS."},
            {"role": "user", "content": "Halo"},
            {"role": "assistant", "content": "Halo, ada yang bisa dibantu?"},
            {"role": "user", "content": "Kapan SNBP?"},
        ]

    def test_build_messages_without_history(self):
        messages = LLMClient.build_messages("sys", [], "prompt")
        assert [m["role"] for m in messages] == ["system", "user"]

    @patch('services.llm_client.Groq')
    def test_generate_success(self, mock_groq_class):
        """Test successful generation returns LLMResponse."""
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _completion("Pendaftaran dibuka Februari.", 150, 25)
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")
        response = client.generate(
            system_instruction="sys",
            history=[],
            prompt="Kapan pendaftaran?",
            temperature=0.3,
            max_tokens=1000
        )

        assert isinstance(response, LLMResponse)
        assert response.text == "Pendaftaran dibuka Februari."
        assert response.tokens_input == 150
        assert response.tokens_output == 25
        assert response.model_used == "llama-3.3-70b-versatile"
        assert response.latency_ms >= 0

        call_kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert call_kwargs["model"] == "llama-3.3-70b-versatile"
        assert call_kwargs["temperature"] == 0.3
        assert call_kwargs["max_tokens"] == 1000
        assert call_kwargs["messages"][-1] == {"role": "user", "content": "Kapan pendaftaran?"}

    @patch('services.llm_client.Groq')
    def test_generate_empty_content(self, mock_groq_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _completion(None)
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")
        assert client.generate("sys", [], "prompt").text == ""

    @patch('services.llm_client.Groq')
    def test_generate_handles_unknown_error(self, mock_groq_class):
        """Test that unexpected errors are raised with structured error."""
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = Exception("API Error")
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")

        with pytest.raises(LLMClientError) as exc_info:
            client.generate("sys", [], "Test prompt")

        error = exc_info.value.error
        assert error.code == "UNKNOWN_ERROR"
        assert "Unexpected error" in error.message
        assert error.details["model"] == "llama-3.3-70b-versatile"
        assert error.details["error_type"] == "Exception"

    @patch('services.llm_client.Groq')
    def test_generate_handles_rate_limit_error(self, mock_groq_class):
        """Test that rate limit errors are handled with retry suggestion."""
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = RateLimitError(
            "Rate limit exceeded",
            response=_groq_response(429),
            body=None
        )
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")

        with pytest.raises(LLMClientError) as exc_info:
            client.generate("sys", [], "Test prompt")

        error = exc_info.value.error
        assert error.code == "RATE_LIMIT_ERROR"
        assert error.details["retry_after"] == 60
        assert mock_client.chat.completions.create.call_count == 1

    @patch('services.llm_client.Groq')
    def test_generate_handles_authentication_error(self, mock_groq_class):
        """Test that authentication errors are handled properly."""
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = AuthenticationError(
            "Invalid API key",
            response=_groq_response(401),
            body=None
        )
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")

        with pytest.raises(LLMClientError) as exc_info:
            client.generate("sys", [], "Test prompt")

        assert exc_info.value.error.code == "AUTHENTICATION_ERROR"
        assert "Authentication failed" in str(exc_info.value)

    @patch('services.llm_client.Groq')
    def test_generate_handles_timeout_error(self, mock_groq_class):
        """Test that timeout errors are handled properly."""
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = APITimeoutError(request=GROQ_REQUEST)
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")

        with pytest.raises(LLMClientError) as exc_info:
            client.generate("sys", [], "Test prompt")

        assert exc_info.value.error.code == "TIMEOUT_ERROR"
        assert "timed out" in exc_info.value.error.message

    @patch('services.llm_client.Groq')
    def test_generate_handles_generic_api_error(self, mock_groq_class):
        """Test that generic API errors are handled properly."""
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = APIError(
            "Service unavailable",
            request=GROQ_REQUEST,
            body=None
        )
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")

        with pytest.raises(LLMClientError) as exc_info:
            client.generate("sys", [], "Test prompt")

        error = exc_info.value.error
        assert error.code == "API_ERROR"
        assert "Groq API error" in error.message
        assert "latency_ms" in error.details

    @patch('services.llm_client.Groq')
    def test_ping(self, mock_groq_class):
        mock_client = Mock()
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")
        assert client.ping(timeout=5.0) is True
        mock_client.with_options.assert_called_once_with(timeout=5.0, max_retries=0)

        mock_client.with_options.return_value.models.list.side_effect = Exception("unreachable")
        assert client.ping() is False
