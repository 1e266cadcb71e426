"""
Unit Tests for ChatSession

End-to-end interaction flow against an in-memory store and a mocked provider.
"""

import asyncio

import pytest

from stylechat.config import DEFAULT_MEDIA_CAPTION, Settings
from stylechat.models.conversation import ConversationHistory, ConversationTurn, MediaAttachment
from stylechat.models.errors import GenerationError, InvalidInputError
from stylechat.pipeline.orchestrator import ChatSession
from stylechat.pipeline.persona import persona_turn


@pytest.fixture
def session(memory_store, mock_llm_provider):
    mock_llm_provider.set_response("Pair it with white sneakers.")
    return ChatSession.from_components(memory_store, mock_llm_provider, Settings())


class TestInteract:
    @pytest.mark.asyncio
    async def test_first_message_seeds_persona_and_persists(self, session, memory_store):
        result = await session.interact("u1", "What goes with dark jeans?")

        assert result.reply == "Pair it with white sneakers."
        assert result.persisted is True
        stored = ConversationHistory.from_record(memory_store.records["u1"])
        assert stored.turns == [
            persona_turn(),
            ConversationTurn.user_text("What goes with dark jeans?"),
            ConversationTurn.model_text("Pair it with white sneakers."),
        ]

    @pytest.mark.asyncio
    async def test_persona_is_first_turn_sent_to_model(self, session, mock_llm_provider):
        await session.interact("u1", "Hi")

        request = mock_llm_provider.generate.await_args.args[0]
        assert request.contents[0] == persona_turn()
        assert request.contents[-1] == ConversationTurn.user_text("Hi")
        assert all(turn.role in {"user", "model"} for turn in request.contents)

    @pytest.mark.asyncio
    async def test_follow_up_sees_previous_exchange(self, session, mock_llm_provider):
        await session.interact("u1", "Hi")
        mock_llm_provider.set_response("A camel coat.")

        result = await session.interact("u1", "And a coat?")

        request = mock_llm_provider.generate.await_args.args[0]
        assert [turn.text for turn in request.contents[1:]] == [
            "Hi",
            "Pair it with white sneakers.",
            "And a coat?",
        ]
        assert result.history.turn_count == 5

    @pytest.mark.asyncio
    async def test_image_only_message(self, session, memory_store, png_bytes):
        media = MediaAttachment(mime_type="image/jpeg", data=png_bytes, filename="fit.jpg")

        await session.interact("u1", None, media)

        stored = ConversationHistory.from_record(memory_store.records["u1"])
        user_turn = stored.turns[1]
        assert user_turn.text == DEFAULT_MEDIA_CAPTION
        assert user_turn.media_parts[0].data == png_bytes

    @pytest.mark.asyncio
    async def test_users_are_isolated(self, session, memory_store):
        await session.interact("alice", "Hi")
        await session.interact("bob", "Hello")

        assert set(memory_store.records) == {"alice", "bob"}
        assert len(memory_store.records["bob"]["history"]) == 3


class TestFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "user_id, message",
        [("u1", None), ("u1", "   "), ("", "Hi"), (None, "Hi")],
    )
    async def test_invalid_input_touches_nothing(
        self, session, memory_store, mock_llm_provider, user_id, message
    ):
        with pytest.raises(InvalidInputError):
            await session.interact(user_id, message)

        assert memory_store.read_calls == 0
        assert memory_store.write_calls == 0
        mock_llm_provider.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_generation_failure_leaves_history_unchanged(
        self, session, memory_store, mock_llm_provider
    ):
        await session.interact("u1", "Hi")
        before = dict(memory_store.records["u1"])
        mock_llm_provider.generate.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(GenerationError):
            await session.interact("u1", "Another question")

        assert memory_store.records["u1"] == before
        assert memory_store.write_calls == 1

    @pytest.mark.asyncio
    async def test_save_failure_still_returns_reply(self, session, memory_store):
        memory_store.fail_writes = True

        result = await session.interact("u1", "Hi")

        assert result.reply == "Pair it with white sneakers."
        assert result.persisted is False

    @pytest.mark.asyncio
    async def test_load_failure_starts_fresh_conversation(
        self, session, memory_store, mock_llm_provider
    ):
        memory_store.fail_reads = True

        result = await session.interact("u1", "Hi")

        request = mock_llm_provider.generate.await_args.args[0]
        assert request.contents == [persona_turn(), ConversationTurn.user_text("Hi")]
        assert result.history.turn_count == 3


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_same_user_interactions_are_serialized(self, session, memory_store, mock_llm_provider):
        from stylechat.llm.models import LLMResponse, LLMUsage

        async def slow_generate(request):
            await asyncio.sleep(0.01)
            return LLMResponse(
                content=f"reply to {request.contents[-1].text}",
                model="mock-model",
                usage=LLMUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
                finish_reason="stop",
                provider="mock",
            )

        mock_llm_provider.generate.side_effect = slow_generate

        await asyncio.gather(
            session.interact("u1", "first"),
            session.interact("u1", "second"),
        )

        stored = ConversationHistory.from_record(memory_store.records["u1"])
        assert stored.turn_count == 5
        assert [turn.role for turn in stored.turns] == ["user", "user", "model", "user", "model"]


class TestStreaming:
    @pytest.mark.asyncio
    async def test_stream_reply_commits_after_completion(
        self, session, memory_store, mock_llm_provider
    ):
        mock_llm_provider.set_stream(["White ", "sneakers."])
        user_turn = session.compose("u1", "Shoes?")

        chunks = [text async for text in session.stream_reply("u1", user_turn)]

        assert chunks == ["White ", "sneakers."]
        stored = ConversationHistory.from_record(memory_store.records["u1"])
        assert stored.turns[-1] == ConversationTurn.model_text("White sneakers.")

    @pytest.mark.asyncio
    async def test_stream_failure_commits_nothing(self, session, memory_store, mock_llm_provider):
        mock_llm_provider.set_stream(["White "], error=ConnectionError("reset"))
        user_turn = session.compose("u1", "Shoes?")

        with pytest.raises(GenerationError):
            async for _ in session.stream_reply("u1", user_turn):
                pass

        assert memory_store.records == {}

    @pytest.mark.asyncio
    async def test_interact_with_stream_flag(self, session, mock_llm_provider):
        mock_llm_provider.set_stream(["Go ", "bold."])

        result = await session.interact("u1", "Color?", stream=True)

        assert result.reply == "Go bold."
        mock_llm_provider.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_history_reads_store(self, session):
        await session.interact("u1", "Hi")

        history = await session.history("u1")

        assert history.turn_count == 3
        assert await session.history("nobody") is None

    @pytest.mark.asyncio
    async def test_interact_stream_validates_before_streaming(
        self, session, memory_store, mock_llm_provider
    ):
        mock_llm_provider.set_stream(["Never sent."])
        stream = session.interact_stream("u1", "   ")

        with pytest.raises(InvalidInputError):
            await anext(stream)

        assert memory_store.read_calls == 0
        assert mock_llm_provider.stream_requests == []

    @pytest.mark.asyncio
    async def test_interact_stream_commits_exchange(self, session, memory_store, mock_llm_provider):
        mock_llm_provider.set_stream(["Cuffed ", "trousers."])

        chunks = [text async for text in session.interact_stream("u1", "Hem?")]

        assert "".join(chunks) == "Cuffed trousers."
        assert len(memory_store.records["u1"]["history"]) == 3
