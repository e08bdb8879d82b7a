from groq import AsyncGroq

from lesson_caddy.config import settings


class GroqClient:
    """Async wrapper around the official Groq SDK.

    Usage::

        groq = GroqClient()                          # uses DEFAULT_MODEL from env
        text = await groq.chat(messages)             # plain completion
        text = await groq.chat(messages, model="llama-3.1-8b-instant")
    """

    def __init__(self, model: str | None = None, api_key: str | None = None) -> None:
        self._model = model or settings.default_model
        self._client = AsyncGroq(api_key=api_key or settings.groq_api_key)

    @property
    def default_model(self) -> str:
        return self._model

    async def chat(
        self,
        messages: list[dict],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Plain-text chat completion. Returns the content string ("" if none)."""
        kwargs: dict = {
            "model": model or self._model,
            "messages": messages,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        resp = await self._client.chat.completions.create(**kwargs)
        return resp.choices[0].message.content or ""
