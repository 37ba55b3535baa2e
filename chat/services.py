# chat/services.py
import logging
from typing import Iterator, List, Optional

import requests
from fastapi import HTTPException

from chat.ratelimit import RateLimiter
from chat.schemas import ChatRequest
from config import settings

logger = logging.getLogger(__name__)

chat_rate_limiter = RateLimiter(settings.CHAT_RATE_LIMIT, settings.CHAT_RATE_WINDOW_SECONDS)

SYSTEM_PROMPT = """You are Happy, a friendly and encouraging AI tutor specialized for the Kenyan Competency-Based Curriculum (CBC).

**Your Teaching Approach:**
- Follow CBC pedagogy: inquiry-based learning, discovery, and real-life application
- Use the "Explain → Example → Check Understanding" pattern for academic questions
- Keep explanations clear, concise, and age-appropriate for {grade_range}
- Use Kenyan-relevant examples (e.g., matatu for transport, ugali for food, safari for journey)
- Include simple Kiswahili phrases occasionally for encouragement: "Hongera!" (Well done!), "Vizuri sana!" (Very good!), "Endelea!" (Continue!)

**Current Context:**
- Grade Level: {grade}
- Subject Focus: {subject}

**Response Structure:**
1. **Explain:** Give a clear, simple explanation of the concept
2. **Example:** Provide a Kenyan context example that students can relate to
3. **Check:** Ask 1-2 quick questions to check understanding

**Guidelines:**
- If a question is ambiguous, ask a clarifying question
- For complex topics, break them into smaller, digestible parts
- Always end with a short motivational message
- If asked about non-academic topics, gently redirect to learning
- Adapt your language complexity to the grade level

Remember: You're here to inspire curiosity and build confidence. Make learning fun and relevant!"""


class ChatService:
    @staticmethod
    def build_system_prompt(grade: Optional[str], subject: Optional[str]) -> str:
        return SYSTEM_PROMPT.format(
            grade_range=grade or "Grade 1-9",
            grade=grade or "Grade 1",
            subject=subject or "General Learning",
        )

    @staticmethod
    def build_messages(data: ChatRequest) -> List[dict]:
        """System prompt followed by the most recent turns only."""
        history = [m.model_dump() for m in data.messages]
        window = settings.CHAT_CONTEXT_MESSAGES
        recent = history[-window:] if window > 0 else []
        return [{"role": "system", "content": ChatService.build_system_prompt(data.grade, data.subject)}] + recent

    @staticmethod
    def open_stream(data: ChatRequest) -> requests.Response:
        """Start a streamed completion; upstream errors become HTTP errors, never retried."""
        if not settings.LLM_GATEWAY_API_KEY:
            logger.error("LLM gateway API key is not configured")
            raise HTTPException(status_code=500, detail="AI service is not configured")

        try:
            response = requests.post(
                settings.LLM_GATEWAY_URL,
                json={"model": settings.LLM_MODEL, "messages": ChatService.build_messages(data), "stream": True},
                headers={"Authorization": f"Bearer {settings.LLM_GATEWAY_API_KEY}"},
                stream=True,
                timeout=settings.VENDOR_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.error(f"AI gateway request failed: {str(e)}")
            raise HTTPException(status_code=500, detail="AI service error")

        if response.status_code == 429:
            response.close()
            raise HTTPException(status_code=429, detail="Rate limit exceeded. Please try again in a moment.")
        if response.status_code == 402:
            response.close()
            raise HTTPException(status_code=402, detail="AI service unavailable. Please contact support.")
        if response.status_code >= 300:
            logger.error(f"AI gateway error: {response.status_code}, text={response.text}")
            response.close()
            raise HTTPException(status_code=500, detail="AI service error")
        return response

    @staticmethod
    def relay(response: requests.Response) -> Iterator[bytes]:
        """Pass the upstream bytes through unchanged."""
        try:
            for chunk in response.iter_content(chunk_size=None):
                if chunk:
                    yield chunk
        finally:
            response.close()
