"""AI Coach: a terminal probability coach backed by Gemini."""

__version__ = "0.1.0"
