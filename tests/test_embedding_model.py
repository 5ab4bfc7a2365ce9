"""Unit tests for EmbeddingModel class."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock, patch, MagicMock
import httpx
from services.embedding_model import EmbeddingModel, EmbeddingMode
from services.errors import EmbeddingError


def _mock_client(mock_client_class, *responses):
    """Wire httpx.Client() so each post() returns the next response."""
    mock_client = MagicMock()
    mock_client.__enter__.return_value.post.side_effect = list(responses)
    mock_client_class.return_value = mock_client
    return mock_client.__enter__.return_value


def _response(status_code, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text
    return response


class TestEmbeddingModel:
    """Test suite for EmbeddingModel."""

    def test_initialization_success(self):
        """Test successful initialization with API key."""
        model = EmbeddingModel(api_key="test_key")
        assert model.api_key == "test_key"
        assert model.model_name == "intfloat/multilingual-e5-base"
        assert model.max_retries == 5
        assert model.api_url.endswith("/intfloat/multilingual-e5-base/pipeline/feature-extraction")

    def test_initialization_without_api_key(self):
        """Test initialization fails without API key."""
        with pytest.raises(ValueError, match="HUGGINGFACE_API_KEY"):
            EmbeddingModel(api_key=None)

    def test_embed_empty_string(self):
        """Test embed raises error for empty string."""
        model = EmbeddingModel(api_key="test_key")

        with pytest.raises(ValueError, match="Text cannot be empty"):
            model.embed("")

        with pytest.raises(ValueError, match="Text cannot be empty"):
            model.embed("   ", EmbeddingMode.QUERY)

    @patch('httpx.Client')
    def test_embed_document_success(self, mock_client_class):
        """Test document embedding sends the passage prefix."""
        client = _mock_client(mock_client_class, _response(200, [[0.1, 0.2, 0.3]]))

        model = EmbeddingModel(api_key="test_key")
        result = model.embed("Jalur SNBP dibuka bulan Februari.", EmbeddingMode.DOCUMENT)

        assert result == [0.1, 0.2, 0.3]
        payload = client.post.call_args.kwargs["json"]
        assert payload["inputs"] == ["passage: Jalur SNBP dibuka bulan Februari."]
        headers = client.post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer test_key"

    @patch('httpx.Client')
    def test_embed_query_uses_query_prefix(self, mock_client_class):
        """Queries and documents are embedded in different modes."""
        client = _mock_client(mock_client_class, _response(200, [0.5, 0.5]))

        model = EmbeddingModel(api_key="test_key")
        result = model.embed_query("  kapan pendaftaran dibuka?  ")

        assert result == [0.5, 0.5]
        assert client.post.call_args.kwargs["json"]["inputs"] == ["query: kapan pendaftaran dibuka?"]

    @patch('httpx.Client')
    def test_mode_accepts_raw_value(self, mock_client_class):
        client = _mock_client(mock_client_class, _response(200, [1, 2]))

        model = EmbeddingModel(api_key="test_key")
        assert model.embed("biaya UKT", "RETRIEVAL_QUERY") == [1.0, 2.0]
        assert client.post.call_args.kwargs["json"]["inputs"] == ["query: biaya UKT"]

    @patch('time.sleep')
    @patch('httpx.Client')
    def test_retry_on_model_loading(self, mock_client_class, mock_sleep):
        """503 responses are retried with exponential backoff."""
        client = _mock_client(
            mock_client_class,
            _response(503, text="Model is loading"),
            _response(503, text="Model is loading"),
            _response(200, [[0.1, 0.2]])
        )

        model = EmbeddingModel(api_key="test_key", initial_delay=1.0)
        result = model.embed_document("test text")

        assert result == [0.1, 0.2]
        assert client.post.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch('time.sleep')
    @patch('httpx.Client')
    def test_model_loading_exhausts_retries(self, mock_client_class, mock_sleep):
        _mock_client(mock_client_class, *[_response(503) for _ in range(3)])

        model = EmbeddingModel(api_key="test_key", max_retries=3)

        with pytest.raises(EmbeddingError, match="failed to load after 3 attempts"):
            model.embed("test text")
        assert mock_sleep.call_count == 2

    @patch('time.sleep')
    @patch('httpx.Client')
    def test_timeout_is_not_retried(self, mock_client_class, mock_sleep):
        """A timeout surfaces immediately instead of being retried."""
        mock_client = MagicMock()
        mock_client.__enter__.return_value.post.side_effect = httpx.ReadTimeout("timed out")
        mock_client_class.return_value = mock_client

        model = EmbeddingModel(api_key="test_key", timeout=5.0)

        with pytest.raises(EmbeddingError, match="timeout") as exc_info:
            model.embed("test text")
        assert exc_info.value.provider_name == "huggingface"
        assert mock_client.__enter__.return_value.post.call_count == 1
        mock_sleep.assert_not_called()

    @patch('httpx.Client')
    def test_network_error(self, mock_client_class):
        mock_client = MagicMock()
        mock_client.__enter__.return_value.post.side_effect = httpx.ConnectError("connection refused")
        mock_client_class.return_value = mock_client

        model = EmbeddingModel(api_key="test_key")

        with pytest.raises(EmbeddingError, match="Network error"):
            model.embed("test text")

    @patch('httpx.Client')
    def test_rate_limit_error(self, mock_client_class):
        """Test rate limit error handling."""
        _mock_client(mock_client_class, _response(429))

        model = EmbeddingModel(api_key="test_key")

        with pytest.raises(EmbeddingError, match="Rate limit exceeded"):
            model.embed("test text")

    @patch('httpx.Client')
    def test_authentication_error(self, mock_client_class):
        """Test authentication error handling."""
        _mock_client(mock_client_class, _response(401))

        model = EmbeddingModel(api_key="invalid_key")

        with pytest.raises(EmbeddingError, match="Invalid API key"):
            model.embed("test text")

    @patch('httpx.Client')
    def test_unexpected_status(self, mock_client_class):
        _mock_client(mock_client_class, _response(500, text="boom"))

        model = EmbeddingModel(api_key="test_key")

        with pytest.raises(EmbeddingError, match="status 500"):
            model.embed("test text")

    @patch('httpx.Client')
    def test_malformed_payload(self, mock_client_class):
        _mock_client(mock_client_class, _response(200, {"error": "unexpected"}))

        model = EmbeddingModel(api_key="test_key")

        with pytest.raises(EmbeddingError, match="Malformed"):
            model.embed("test text")

    def test_parse_vector_shapes(self):
        assert EmbeddingModel._parse_vector([0.1, 0.2]) == [0.1, 0.2]
        assert EmbeddingModel._parse_vector([[[0.1, 0.2]]]) == [0.1, 0.2]
        with pytest.raises(EmbeddingError):
            EmbeddingModel._parse_vector([[0.1], [0.2]])
        with pytest.raises(EmbeddingError):
            EmbeddingModel._parse_vector([])

    @patch('httpx.Client')
    def test_warmup_success(self, mock_client_class):
        """Test successful model warmup."""
        _mock_client(mock_client_class, _response(200, [0.1, 0.2, 0.3]))

        model = EmbeddingModel(api_key="test_key")
        assert model.warmup() is True

    @patch('httpx.Client')
    def test_warmup_failure(self, mock_client_class):
        """Test warmup failure handling."""
        _mock_client(mock_client_class, _response(401))

        model = EmbeddingModel(api_key="test_key")
        assert model.warmup() is False
