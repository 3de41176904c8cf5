from typing import Any, Dict, List
from sqlalchemy.orm import Session

from trustroute.models import User
from trustroute.bookings.booking_service import BookingService
from trustroute.chat.client import ChatClient
from trustroute.chat.context import build_system_prompt, load_policy_text
from trustroute.chat.schemas import ChatMessage

class ChatService:
    """Answers refund questions with the user's bookings as context"""

    def __init__(self, db: Session, client: ChatClient, policy_path: str):
        self.db = db
        self.client = client
        self.policy_path = policy_path

    def build_messages(self, user: User, messages: List[ChatMessage]) -> List[Dict[str, str]]:
        bookings = BookingService(self.db).get_user_bookings(user.id)
        system_prompt = build_system_prompt(user, bookings, load_policy_text(self.policy_path))
        return [{"role": "system", "content": system_prompt}] + [
            {"role": m.role, "content": m.content} for m in messages
        ]

    def reply(self, user: User, messages: List[ChatMessage]) -> Dict[str, Any]:
        return self.client.complete(self.build_messages(user, messages))
