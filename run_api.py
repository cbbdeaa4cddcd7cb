"""
Run the VitalScope REST API.

Usage:
    python run_api.py

Environment variables (all optional):
    LLM_PROVIDER        "openai", "groq", or "ollama" (default: openai)
    LLM_MODEL_OPENAI    Vision model when LLM_PROVIDER=openai (default: gpt-4.1-mini)
    LLM_MODEL_GROQ      Vision model when LLM_PROVIDER=groq
    LLM_MODEL_OLLAMA    Vision model when LLM_PROVIDER=ollama (default: llama3.2-vision)
    OPENAI_API_KEY      Required when LLM_PROVIDER=openai
    GROQ_API_KEY        Required when LLM_PROVIDER=groq
    DB_PATH             SQLite file for profile and history (default: ~/.vitalscope/vitalscope.db)
    HISTORY_LIMIT       Number of past scans kept (default: 20)
    API_PORT            Port to bind on localhost (default: 8000)
"""

import os
import sys
from pathlib import Path

# Ensure src/ is importable without installing the package
sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "vitalscope.adapters.rest.app:app",
        host="127.0.0.1",
        port=int(os.getenv("API_PORT", "8000")),
        reload=True,
    )
