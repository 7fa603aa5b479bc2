"""Tests for the tutor chat session."""

from types import SimpleNamespace

import pytest

from src.planner.errors import SessionClosedError
from src.planner.tutor import GREETING, TutorSession, extract_sources, is_resource_request
from tests.conftest import FakeGenaiClient


def _grounded_response(text, *pages):
    chunks = [SimpleNamespace(web=SimpleNamespace(uri=uri, title=title)) for uri, title in pages]
    candidate = SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=chunks))
    return SimpleNamespace(text=text, candidates=[candidate])


@pytest.fixture
def tutor():
    return TutorSession(FakeGenaiClient(), model="gemini-test")


class TestResourceDetection:
    @pytest.mark.parametrize(
        "message",
        ["Any videos on optics?", "Can you EXPLAIN osmosis", "I need help with algebra"],
    )
    def test_grounded(self, message):
        assert is_resource_request(message)

    def test_plain_chat(self):
        assert not is_resource_request("I feel tired today")


class TestTutorSession:
    def test_starts_with_greeting(self, tutor):
        assert [m.text for m in tutor.history] == [GREETING]

    def test_chat_reply_streams_and_records(self, tutor):
        chunks = list(tutor.send("I feel tired today"))

        assert [c.text for c in chunks] == ["Sure, ", "let's go."]
        assert tutor.history[-2].role == "user"
        assert tutor.history[-1].text == "Sure, let's go."
        assert tutor.history[-1].sources == []

    def test_chat_created_with_tutor_instruction(self, tutor):
        created = tutor.client.chats.created[0]
        assert created["model"] == "gemini-test"
        assert "Schedulify AI" in created["config"].system_instruction

    def test_grounded_reply_carries_sources(self, tutor):
        tutor.client.models.queue(
            _grounded_response("Try these.", ("https://khanacademy.org/a", "Khan Academy"))
        )
        reply = tutor.ask("Recommend videos on optics")

        assert reply.text == "Try these."
        assert reply.sources[0].uri == "https://khanacademy.org/a"
        call = tutor.client.models.calls[0]
        assert call["config"].tools
        # The placeholder reply is not replayed into the request
        assert call["contents"][-1].parts[0].text == "Recommend videos on optics"

    def test_blank_message_rejected(self, tutor):
        with pytest.raises(ValueError):
            tutor.ask("   ")

    def test_closed_session_rejects_messages(self, tutor):
        tutor.close()
        assert tutor.closed
        with pytest.raises(SessionClosedError):
            tutor.ask("hello")


class TestExtractSources:
    def test_skips_chunks_without_web(self):
        response = _grounded_response("x", ("https://a", "A"))
        response.candidates[0].grounding_metadata.grounding_chunks.append(SimpleNamespace(web=None))
        assert [s.uri for s in extract_sources(response)] == ["https://a"]

    def test_no_candidates(self):
        assert extract_sources(SimpleNamespace(candidates=None)) == []
