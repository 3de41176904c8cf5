import logging
from typing import Any, Dict, List, Optional

import httpx

from trustroute.config import Settings

logger = logging.getLogger(__name__)

class ChatNotConfiguredError(RuntimeError):
    """Raised when no API key is configured for the chat provider"""

class ChatUpstreamError(RuntimeError):
    """Raised when the chat provider fails or answers with an error"""

class ChatClient:
    """Thin client for an OpenAI-compatible chat completions endpoint"""

    def __init__(
        self,
        api_key: Optional[str],
        url: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._http = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatClient":
        return cls(
            api_key=settings.OPENROUTER_API_KEY,
            url=settings.OPENROUTER_URL,
            model=settings.CHAT_MODEL,
            temperature=settings.CHAT_TEMPERATURE,
            max_tokens=settings.CHAT_MAX_TOKENS,
            timeout=settings.CHAT_TIMEOUT_SECONDS,
        )

    def complete(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        """Send a conversation and return the provider's JSON response"""
        if not self.api_key:
            raise ChatNotConfiguredError("Chat assistant is not configured")

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "TrustRoute AI Chatbot",
        }

        try:
            response = self._http.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Chat provider request failed: %s", e)
            raise ChatUpstreamError("AI Service Error") from e

        if response.status_code >= 400:
            logger.error("Chat provider error %s: %s", response.status_code, response.text[:500])
            raise ChatUpstreamError("AI Service Error")

        try:
            return response.json()
        except ValueError as e:
            logger.error("Chat provider returned a non-JSON body: %s", response.text[:500])
            raise ChatUpstreamError("AI Service Error") from e

    def close(self) -> None:
        self._http.close()
