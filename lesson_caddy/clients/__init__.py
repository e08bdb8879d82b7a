from lesson_caddy.clients.groq_client import GroqClient

__all__ = ["GroqClient"]
