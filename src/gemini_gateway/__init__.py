"""
Gemini Gateway package.

Provides:
- A FastAPI gateway forwarding prompts to the Gemini generateContent API
- Per-client rate limiting and health/status endpoints
"""

__version__ = "1.0.0"
