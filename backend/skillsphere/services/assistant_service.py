# backend/skillsphere/services/assistant_service.py
"""
Assistant Service for SkillSphere

Question answering and session summaries backed by a generative-text
provider. The provider is optional in practice: any failure, including a
missing API key, produces a static answer flagged ``is_ai=False``.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.constants import BRAND_NAME
from ..core.exceptions import ValidationException
from ..integrations.base import ProviderError
from ..integrations.gemini_client import TextGenerator
from ..models.user import User
from .base import BaseService
from .transcript_service import TranscriptService

logger = logging.getLogger(__name__)

MAX_HISTORY_MESSAGES = 5
MAX_RESOURCES = 3

FALLBACK_ANSWERS = (
    "I understand you're looking for guidance. While I'm temporarily unable to provide a detailed "
    "response, I recommend checking out MDN Web Docs or the official documentation for your technology.",
    "Great question! I'm having some technical difficulties right now, so try breaking the problem "
    "into smaller parts and tackling them one by one. Stack Overflow and GitHub discussions help too.",
    "While I'm currently unavailable, consider reaching out to your mentor for personalized guidance, "
    "or explore interactive platforms like freeCodeCamp.",
    "Thank you for your question! While I'm temporarily offline, remember that hands-on practice is "
    "the best teacher. Try building a small project around the concept you're asking about.",
)

SPECIALIZED_FALLBACK_ANSWERS: Dict[str, Sequence[str]] = {
    "software-dev": (
        "While I'm having technical difficulties, check the official documentation for your stack. "
        "Stack Overflow and GitHub issues are also excellent resources for debugging.",
        "I'm temporarily unavailable, but stepping through the code with logging or a debugger "
        "usually narrows the problem down quickly.",
    ),
    "business": (
        "While I'm temporarily unavailable, study successful businesses in your industry to "
        "understand their strategies and market positioning.",
        "I'm having technical difficulties, but solid planning starts with market research and "
        "understanding your competition.",
    ),
}

FALLBACK_SESSION_SUMMARY = (
    "• Session covered important programming concepts\n"
    "• Mentor provided valuable insights and guidance\n"
    "• Discussion included practical problem-solving techniques"
)

STATIC_RESOURCES = (
    "MDN Web Docs - https://developer.mozilla.org",
    "freeCodeCamp - https://freecodecamp.org",
    "JavaScript.info - https://javascript.info",
    "CSS-Tricks - https://css-tricks.com",
    "React Official Docs - https://react.dev",
)

SUMMARY_PROMPT = """Summarize this learning session transcript in bullet points. Then provide 3 recommended learning resources with brief descriptions.

Transcript:
{transcript}

Please format your response as:
SUMMARY:
• [bullet point 1]
• [bullet point 2]
• [bullet point 3]

RECOMMENDED RESOURCES:
1. [Resource name] - [brief description]
2. [Resource name] - [brief description]
3. [Resource name] - [brief description]"""


def build_system_prompt(user: User) -> str:
    role = "Mentor" if user.is_mentor else "Learner"
    return f"""You are a helpful and friendly mentor AI assistant for {BRAND_NAME}, a mentorship learning platform.

User Profile:
- Name: {user.full_name}
- Role: {role}

Instructions:
- Answer questions simply but accurately
- Provide practical, actionable advice
- Suggest specific resources when helpful
- Keep responses concise but informative
- If the user is a mentor, focus on teaching strategies and advanced concepts
- If the user is a learner, focus on clear explanations and step-by-step guidance"""


def parse_summary(text: str) -> Dict[str, Any]:
    """Split a SUMMARY / RECOMMENDED RESOURCES answer into its two parts."""
    summary_part, _, resources_part = text.partition("RECOMMENDED RESOURCES:")
    summary = summary_part.replace("SUMMARY:", "").strip()

    resources: List[str] = list(STATIC_RESOURCES)
    lines = [line.strip() for line in resources_part.splitlines() if line.strip()]
    if lines:
        resources = [line.split(".", 1)[1].strip() if line[:1].isdigit() and "." in line else line for line in lines]
    return {"summary": summary, "resources": resources[:MAX_RESOURCES]}


class AssistantService(BaseService):
    """Generative answers with static fallbacks."""

    def __init__(
        self,
        db: Session,
        text_generator: TextGenerator,
        transcript_service: Optional[TranscriptService] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(db)
        self.text_generator = text_generator
        self.transcript_service = transcript_service
        self._rng = rng or random.Random()

    def fallback_answer(self, mentor_type: Optional[str] = None) -> str:
        choices = SPECIALIZED_FALLBACK_ANSWERS.get(mentor_type or "", FALLBACK_ANSWERS)
        return self._rng.choice(list(choices))

    @BaseService.measure_operation("assistant_ask")
    def ask(
        self,
        question: str,
        user: User,
        chat_history: Optional[Sequence[Dict[str, Any]]] = None,
        mentor_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not question or not question.strip():
            raise ValidationException("Question is required")

        lines = [build_system_prompt(user), "", "Conversation History:"]
        for entry in list(chat_history or [])[-MAX_HISTORY_MESSAGES:]:
            speaker = "User" if entry.get("is_user") else "Assistant"
            lines.append(f"{speaker}: {entry.get('text', '')}")
        lines.append("")
        lines.append(f"User: {question.strip()}")
        lines.append("Assistant:")

        try:
            answer = self.text_generator.generate("\n".join(lines))
        except ProviderError as exc:
            self.logger.warning("Generative provider unavailable, using fallback: %s", exc.message)
            return {"response": self.fallback_answer(mentor_type), "is_ai": False}
        return {"response": answer, "is_ai": True}

    @BaseService.measure_operation("assistant_summarize_session")
    def summarize_session(self, transcript_text: str) -> Dict[str, Any]:
        if not transcript_text or not transcript_text.strip():
            raise ValidationException("Transcript is required")

        try:
            answer = self.text_generator.generate(SUMMARY_PROMPT.format(transcript=transcript_text.strip()))
        except ProviderError as exc:
            self.logger.warning("Summary generation failed, using fallback: %s", exc.message)
            return {
                "summary": FALLBACK_SESSION_SUMMARY,
                "resources": list(STATIC_RESOURCES[:MAX_RESOURCES]),
                "is_ai": False,
            }
        return {**parse_summary(answer), "is_ai": True}

    @BaseService.measure_operation("assistant_summarize_transcript")
    def summarize_transcript(self, session_id: str, user_id: str) -> Dict[str, Any]:
        """Summarize a stored transcript; participant access is enforced by TranscriptService."""
        if self.transcript_service is None:
            raise ValidationException("Transcript summaries are not available")
        transcript = self.transcript_service.get_by_session(session_id, user_id)
        if not transcript.full_text:
            raise ValidationException("Transcript has no content yet")
        return self.summarize_session(transcript.full_text)
