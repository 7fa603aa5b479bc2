"""Chatbot tutor session.

Each signed-in user gets their own TutorSession; there is no shared chat.
Messages that ask for resources or explanations are answered with Google
Search grounding so the reply can cite sources; everything else streams
from the ongoing chat.
"""

import re
from collections.abc import Iterator
from typing import Any

from google.genai import types

from src.planner.errors import SessionClosedError
from src.planner.logging import get_logger
from src.planner.models import ChatChunk, ChatMessage, GroundingSource

log = get_logger(__name__)

TUTOR_INSTRUCTION = (
    "You are Schedulify AI, a supportive and motivating study tutor. "
    "Ask guiding questions instead of handing out answers, and explain concepts "
    "step by step with simple analogies. When a student struggles, recommend free "
    "learning resources and always include their URLs. If the student feels tired or "
    "unmotivated, reply with a short motivational line or study tip. Answer questions "
    "about their study schedule and suggest lighter adjustments if they feel overwhelmed. "
    "When asked, suggest fun ways to turn revision into a game or challenge."
)

GREETING = "Hello! I'm Schedulify AI. How can I help you with your studies today?"

_RESOURCE_RE = re.compile(r"resources|videos|articles|courses|explain|help with", re.IGNORECASE)

# Turns of history replayed into a grounded one-off request
_GROUNDED_CONTEXT_TURNS = 6


def is_resource_request(message: str) -> bool:
    """True if *message* should be answered with search grounding."""
    return bool(_RESOURCE_RE.search(message))


def extract_sources(response: Any) -> list[GroundingSource]:
    """Pull web grounding sources out of a generate_content response."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources: list[GroundingSource] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None or not getattr(web, "uri", None):
            continue
        sources.append(GroundingSource(uri=web.uri, title=getattr(web, "title", None) or ""))
    return sources


class TutorSession:
    """One user's conversation with the tutor.

    Created on sign-in and closed on sign-out. ``send`` yields the reply in
    chunks and records both sides in ``history``.
    """

    def __init__(self, client: Any, *, model: str) -> None:
        self.client = client
        self.model = model
        self.history: list[ChatMessage] = [ChatMessage(role="model", text=GREETING)]
        self._chat = client.chats.create(
            model=model,
            config=types.GenerateContentConfig(system_instruction=TUTOR_INSTRUCTION),
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._chat = None
        self._closed = True
        log.debug("tutor_session_closed", turns=len(self.history))

    def send(self, message: str) -> Iterator[ChatChunk]:
        """Send a user message and stream the reply.

        Raises:
            SessionClosedError: If the session was closed.
            ValueError: If *message* is blank.
        """
        if self._closed:
            raise SessionClosedError("Tutor session has ended. Please sign in again.")
        if not message.strip():
            raise ValueError("message must not be empty")

        self.history.append(ChatMessage(role="user", text=message))
        reply = ChatMessage(role="model", text="")
        self.history.append(reply)

        if is_resource_request(message):
            chunks = self._grounded_reply(message)
        else:
            chunks = self._chat_reply(message)

        text_parts: list[str] = []
        sources: list[GroundingSource] = []
        for chunk in chunks:
            text_parts.append(chunk.text)
            if chunk.sources and not sources:
                sources = chunk.sources
            yield chunk

        # Replace the placeholder once the stream is drained
        self.history[-1] = reply.model_copy(
            update={"text": "".join(text_parts), "sources": sources}
        )

    def ask(self, message: str) -> ChatMessage:
        """Non-streaming convenience: drain ``send`` and return the reply."""
        for _ in self.send(message):
            pass
        return self.history[-1]

    def _chat_reply(self, message: str) -> Iterator[ChatChunk]:
        for chunk in self._chat.send_message_stream(message):
            text = getattr(chunk, "text", None)
            if text:
                yield ChatChunk(text=text)

    def _grounded_reply(self, message: str) -> Iterator[ChatChunk]:
        # History minus the placeholder reply we just appended
        recent = self.history[:-1][-_GROUNDED_CONTEXT_TURNS:]
        contents = [
            types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
            for turn in recent
            if turn.text
        ]
        response = self.client.models.generate_content(
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=TUTOR_INSTRUCTION,
                tools=[types.Tool(google_search=types.GoogleSearch())],
            ),
        )
        sources = extract_sources(response)
        log.info("tutor_grounded_reply", sources=len(sources))
        yield ChatChunk(text=response.text or "", sources=sources)
