"""Lesson Caddy: lesson logging and AI summaries for golf coaches."""

__version__ = "0.1.0"
