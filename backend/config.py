"""Configuration management for the PENS admissions RAG chatbot."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_TABLE = os.getenv("SUPABASE_TABLE", "pens_docs")

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")  # json | text

# CORS Configuration
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

# Model Configuration
# e5 models are asymmetric: documents and queries get different prefixes
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "intfloat/multilingual-e5-base")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

# Chunking Configuration (1 token ~= 4 chars for mixed Indonesian/English text)
CHUNK_SIZE = 1800  # characters, ~450 tokens
CHUNK_OVERLAP = 300  # characters, ~75 tokens
MIN_CHUNK_LENGTH = 50

# Ingestion Configuration
MIN_EXTRACTED_TEXT_LENGTH = 100  # below this a PDF is most likely a scanned image
EMBED_DELAY_SECONDS = 0.2
EMBED_PROGRESS_EVERY = 10

# Retrieval Configuration
RETRIEVAL_TOP_K = 3

# Generation Configuration
GENERATION_TEMPERATURE = 0.3
MAX_OUTPUT_TOKENS = 1000

# Health check calls use a short fixed timeout
HEALTH_CHECK_TIMEOUT = 5.0
