# chat/routes.py
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from chat.schemas import ChatRequest
from chat.services import ChatService, chat_rate_limiter
from utils.network import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

def enforce_rate_limit(request: Request) -> str:
    """Count the request against the caller's IP before the body is read."""
    client_ip = get_client_ip(request)
    if not chat_rate_limiter.check(client_ip):
        logger.warning(f"Chat rate limit exceeded for {client_ip}")
        raise HTTPException(status_code=429, detail="Rate limit exceeded. Please try again in a moment.")
    return client_ip

@router.post("")
def chat(data: ChatRequest, client_ip: str = Depends(enforce_rate_limit)):
    """Stream a tutoring reply from the LLM gateway as server-sent events."""
    upstream = ChatService.open_stream(data)
    return StreamingResponse(
        ChatService.relay(upstream),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
