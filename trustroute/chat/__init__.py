from .router import router, get_chat_client
from .client import ChatClient, ChatNotConfiguredError, ChatUpstreamError
from .service import ChatService

__all__ = ["router", "get_chat_client", "ChatClient", "ChatNotConfiguredError", "ChatUpstreamError", "ChatService"]
