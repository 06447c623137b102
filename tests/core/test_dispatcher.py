"""Tests for the message dispatcher."""

import asyncio

import pytest
from unittest.mock import Mock

from ai_coach.core.dispatcher import DispatchState, MessageDispatcher
from ai_coach.core.narrator import Narrator
from ai_coach.core.prompts import GREETING, STREAM_ERROR_MESSAGE
from ai_coach.core.transcript import Role, Transcript, Turn


def make_dispatcher(session, voice_mode=False, narrator=None):
    transcript = Transcript([Turn(Role.MODEL, GREETING)])
    state = {"voice": voice_mode}
    dispatcher = MessageDispatcher(
        transcript,
        session_provider=lambda: session,
        voice_mode_provider=lambda: state["voice"],
        narrator=narrator,
    )
    return dispatcher, transcript, state


class TestSubmitGuards:
    """Submissions that must be dropped without a trace."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    def test_blank_input_is_ignored(self, make_session, text):
        dispatcher, transcript, _ = make_dispatcher(make_session(["x"]))

        assert dispatcher.submit(text) is None
        assert len(transcript) == 1
        assert dispatcher.state is DispatchState.IDLE

    def test_no_session_is_ignored(self):
        dispatcher, transcript, _ = make_dispatcher(None)

        assert dispatcher.submit("Hello") is None
        assert len(transcript) == 1

    def test_submission_while_streaming_is_ignored(self, make_session):
        dispatcher, transcript, _ = make_dispatcher(make_session(["x"]))

        assert dispatcher.submit("first") is not None
        assert dispatcher.is_streaming
        assert dispatcher.submit("second") is None

        assert [turn.content for turn in transcript][1:] == ["first", ""]


class TestSubmit:
    """Recording turns and composing the outgoing message."""

    def test_records_user_turn_verbatim_and_placeholder(self, make_session):
        dispatcher, transcript, _ = make_dispatcher(make_session([]))

        message = dispatcher.submit("  What is P(A|B)? ")

        assert message == "  What is P(A|B)? "
        assert transcript[1].role is Role.USER
        assert transcript[1].content == "  What is P(A|B)? "
        assert transcript[2].role is Role.MODEL
        assert transcript[2].content == ""
        assert dispatcher.state is DispatchState.SENDING

    def test_voice_mode_prepends_directive(self, make_session):
        dispatcher, transcript, _ = make_dispatcher(make_session([]), voice_mode=True)

        message = dispatcher.submit("Roll a die")

        assert message == "voice mode: ON\nRoll a die"
        assert transcript[1].content == "Roll a die"

    def test_off_directive_is_optional(self, make_session):
        dispatcher, _, _ = make_dispatcher(make_session([]))
        dispatcher.send_off_directive = True

        assert dispatcher.submit("Roll a die") == "voice mode: OFF\nRoll a die"

    def test_notifies_listeners(self, make_session):
        dispatcher, _, _ = make_dispatcher(make_session([]))
        dispatcher.on_transcript_changed = Mock()
        dispatcher.on_state_changed = Mock()

        dispatcher.submit("Hi")

        dispatcher.on_transcript_changed.assert_called_once()
        dispatcher.on_state_changed.assert_called_once_with(DispatchState.SENDING)


class TestStream:
    """Streaming replies into the transcript."""

    @pytest.mark.asyncio
    async def test_prefix_consistency(self, make_session):
        fragments = ["A coin ", "has two ", "sides."]
        session = make_session(fragments)
        dispatcher, transcript, _ = make_dispatcher(session)
        seen = []
        dispatcher.on_transcript_changed = lambda t: seen.append(t.last.content)

        message = dispatcher.submit("Tell me about coins")
        seen.clear()
        result = await dispatcher.stream(message)

        assert seen == ["A coin ", "A coin has two ", "A coin has two sides."]
        assert result == "A coin has two sides."
        assert transcript.last.content == result
        assert session.sent == ["Tell me about coins"]
        assert dispatcher.state is DispatchState.IDLE

    @pytest.mark.asyncio
    async def test_state_sequence(self, make_session):
        dispatcher, _, _ = make_dispatcher(make_session(["ok"]))
        states = []
        dispatcher.on_state_changed = states.append

        await dispatcher.send("Hi")

        assert states == [
            DispatchState.SENDING,
            DispatchState.STREAMING,
            DispatchState.IDLE,
        ]

    @pytest.mark.asyncio
    async def test_failure_before_any_fragment(self, make_session):
        dispatcher, transcript, _ = make_dispatcher(make_session(["never"], fail_after=0))

        await dispatcher.send("Hi")

        assert transcript.last.content == STREAM_ERROR_MESSAGE
        assert dispatcher.is_streaming is False
        assert isinstance(dispatcher.last_error, ConnectionError)

    @pytest.mark.asyncio
    async def test_failure_discards_partial_content(self, make_session):
        dispatcher, transcript, _ = make_dispatcher(
            make_session(["Half an ", "answer"], fail_after=1)
        )

        await dispatcher.send("Hi")

        assert transcript.last.content == STREAM_ERROR_MESSAGE
        assert transcript[1].content == "Hi"

    @pytest.mark.asyncio
    async def test_failure_opening_stream(self):
        session = Mock()
        session.send_stream = Mock(side_effect=RuntimeError("network down"))
        dispatcher, transcript, _ = make_dispatcher(session)

        await dispatcher.send("Hi")

        assert transcript.last.content == STREAM_ERROR_MESSAGE
        assert dispatcher.state is DispatchState.IDLE

    @pytest.mark.asyncio
    async def test_can_send_again_after_failure(self, make_session):
        dispatcher, transcript, _ = make_dispatcher(make_session(["x"], fail_after=0))
        await dispatcher.send("first")

        dispatcher.session_provider = lambda: make_session(["fine"])
        assert await dispatcher.send("second") is True
        assert transcript.last.content == "fine"

    @pytest.mark.asyncio
    async def test_send_returns_false_when_dropped(self, make_session):
        dispatcher, _, _ = make_dispatcher(make_session(["x"]))

        assert await dispatcher.send("   ") is False


class TestNarration:
    """Voice mode narration after a completed reply."""

    @pytest.mark.asyncio
    async def test_voice_mode_speaks_narration(self, make_session, speech_engine):
        narrator = Narrator(speech_engine)
        dispatcher, transcript, _ = make_dispatcher(
            make_session(["Heads or tails.\n", "VOICE_OVER: It's a coin toss!"]),
            voice_mode=True,
            narrator=narrator,
        )

        await dispatcher.send("Coin?")

        speech_engine.speak.assert_called_once()
        assert speech_engine.speak.call_args.args[0] == "It's a coin toss!"
        assert "VOICE_OVER:" in transcript.last.content

    @pytest.mark.asyncio
    async def test_voice_mode_without_narration(self, make_session, speech_engine):
        dispatcher, _, _ = make_dispatcher(
            make_session(["No narration here."]),
            voice_mode=True,
            narrator=Narrator(speech_engine),
        )

        await dispatcher.send("Coin?")

        speech_engine.speak.assert_not_called()

    @pytest.mark.asyncio
    async def test_voice_mode_off_never_speaks(self, make_session, speech_engine):
        dispatcher, transcript, _ = make_dispatcher(
            make_session(["Answer\n", "VOICE_OVER: spoken"]),
            narrator=Narrator(speech_engine),
        )

        await dispatcher.send("What is P(A|B)?")

        speech_engine.speak.assert_not_called()
        assert transcript[1].content == "What is P(A|B)?"

    @pytest.mark.asyncio
    async def test_failed_stream_never_speaks(self, make_session, speech_engine):
        dispatcher, _, _ = make_dispatcher(
            make_session(["VOICE_OVER: hi"], fail_after=1),
            voice_mode=True,
            narrator=Narrator(speech_engine),
        )

        await dispatcher.send("Hi")

        speech_engine.speak.assert_not_called()

    @pytest.mark.asyncio
    async def test_voice_mode_is_read_when_sending(self, make_session, speech_engine):
        dispatcher, _, state = make_dispatcher(
            make_session(["Answer\n", "VOICE_OVER: spoken"]),
            narrator=Narrator(speech_engine),
        )

        message = dispatcher.submit("Coin?")
        state["voice"] = True
        await dispatcher.stream(message)

        assert message == "Coin?"
        speech_engine.speak.assert_not_called()

    @pytest.mark.asyncio
    async def test_voice_off_before_reply_ends_stays_silent(
        self, make_session, speech_engine
    ):
        dispatcher, _, state = make_dispatcher(
            make_session(["Answer\n", "VOICE_OVER: spoken"]),
            voice_mode=True,
            narrator=Narrator(speech_engine),
        )

        message = dispatcher.submit("Coin?")
        state["voice"] = False
        await dispatcher.stream(message)

        speech_engine.speak.assert_not_called()


class StalledSession:
    """Session whose reply never arrives."""

    def __init__(self, fragments=()):
        self.fragments = list(fragments)
        self.release = asyncio.Event()

    async def send_stream(self, text):
        for fragment in self.fragments:
            yield fragment
        await self.release.wait()


class TestCancellation:
    """A cancelled stream worker must not leave the dispatcher busy."""

    @pytest.mark.asyncio
    async def test_cancel_before_any_fragment(self):
        dispatcher, transcript, _ = make_dispatcher(StalledSession())

        task = asyncio.create_task(dispatcher.send("Hi"))
        await asyncio.sleep(0.01)
        assert dispatcher.state is DispatchState.STREAMING

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert dispatcher.state is DispatchState.IDLE
        assert not dispatcher.is_streaming
        assert transcript.last.content == STREAM_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_cancel_keeps_partial_reply(self):
        dispatcher, transcript, _ = make_dispatcher(StalledSession(["Half an ans"]))

        task = asyncio.create_task(dispatcher.send("Hi"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert dispatcher.state is DispatchState.IDLE
        assert transcript.last.content == "Half an ans"

    @pytest.mark.asyncio
    async def test_accepts_new_message_after_cancel(self, make_session):
        dispatcher, transcript, _ = make_dispatcher(StalledSession())

        task = asyncio.create_task(dispatcher.send("Hi"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        dispatcher.session_provider = lambda: make_session(["Back again"])
        assert await dispatcher.send("Still there?") is True
        assert transcript.last.content == "Back again"
