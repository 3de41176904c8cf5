from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from trustroute.config import Settings
from trustroute.database import get_db
from trustroute.auth.dependencies import get_current_user, get_settings
from trustroute.models import User
from trustroute.chat.client import ChatClient, ChatNotConfiguredError, ChatUpstreamError
from trustroute.chat.schemas import ChatRequest
from trustroute.chat.service import ChatService

router = APIRouter()

def get_chat_client(request: Request) -> ChatClient:
    return request.app.state.chat_client

@router.post("")
def chat(
    request: ChatRequest,
    current_user: User = Depends(get_current_user),
    client: ChatClient = Depends(get_chat_client),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
):
    """Ask the refund assistant a question"""
    chat_service = ChatService(db, client, settings.REFUND_POLICY_PATH)

    try:
        return chat_service.reply(current_user, request.messages)
    except ChatNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )
    except ChatUpstreamError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        )
