"""
单元测试: 对话服务 (ChatService)
"""

import pytest

from chatflow.config import Config
from chatflow.exceptions import EmptySequenceError, InvalidResponseError, SequenceLoadError
from conftest import make_sequence, texts


ONBOARDING = [
    {"id": 1, "text": "Hi!"},
    {"id": 2, "type": "textInput", "text": "Your name?", "storeKey": "user.name"},
    {"id": 3, "text": "Nice to meet you, {user.name}."},
    {"id": 4, "type": "choice", "text": "Coffee or tea?", "storeKey": "user.drink", "choices": [
        {"text": "Coffee", "value": "coffee", "nextMessageId": 10},
        {"text": "Tea", "nextMessageId": 20},
        {"text": "Surprise me", "sequenceId": "surprise"},
    ]},
    {"id": 10, "text": "Coffee it is."},
    {"id": 20, "text": "Tea it is."},
]


@pytest.fixture
def service(source, make_service):
    source.add("onboarding", make_sequence("onboarding", ONBOARDING))
    source.add("surprise", make_sequence("surprise", [{"id": 1, "text": "Hot chocolate!"}]))
    return make_service()


class TestStart:

    def test_start_runs_until_input(self, service):
        result = service.start("onboarding")
        assert texts(result) == ["Hi!", "Your name?"]
        assert result.interaction_message_id == 2

    def test_start_uses_default_sequence(self, source, make_service):
        source.add(Config.DEFAULT_SEQUENCE_ID, make_sequence(Config.DEFAULT_SEQUENCE_ID, [{"id": 1, "text": "hey"}]))
        result = make_service().start()
        assert result.complete
        assert texts(result) == ["hey"]

    def test_unknown_sequence(self, service):
        with pytest.raises(SequenceLoadError):
            service.start("nope")

    def test_empty_sequence(self, source, service):
        source.add("empty", make_sequence("empty", []))
        with pytest.raises(EmptySequenceError):
            service.start("empty")


class TestResponses:

    def test_text_input_is_stored_and_flow_continues(self, state, service):
        service.start("onboarding")
        result = service.submit_user_response(2, "Robin")

        assert state.get("user.name") == "Robin"
        assert texts(result) == ["Nice to meet you, Robin.", "Coffee or tea?"]
        assert result.interaction_message_id == 4

    @pytest.mark.parametrize("response,stored,reply", [
        (0, "coffee", "Coffee it is."),
        ("Coffee", "coffee", "Coffee it is."),
        ("coffee", "coffee", "Coffee it is."),
        (1, "Tea", "Tea it is."),
        ("Tea", "Tea", "Tea it is."),
    ])
    def test_choice_selection(self, state, service, response, stored, reply):
        service.start("onboarding")
        service.submit_user_response(2, "Robin")
        result = service.submit_user_response(4, response)

        assert state.get("user.drink") == stored
        assert texts(result) == [reply]
        assert result.complete

    def test_choice_can_switch_sequence(self, state, service):
        service.start("onboarding")
        service.submit_user_response(2, "Robin")
        result = service.submit_user_response(4, 2)

        assert texts(result) == ["Hot chocolate!"]
        assert service.sequences.current_sequence_id == "surprise"
        assert state.get("user.drink") == "Surprise me"

    @pytest.mark.parametrize("message_id,value", [
        (99, "x"),          # 不存在
        (1, "x"),           # 不可交互
        (4, "Tea"),         # 还没轮到
    ])
    def test_invalid_responses(self, service, message_id, value):
        service.start("onboarding")
        with pytest.raises(InvalidResponseError):
            service.submit_user_response(message_id, value)

    @pytest.mark.parametrize("value", [
        7,                  # 序号越界
        "Juice",            # 没有匹配的选项
    ])
    def test_invalid_choice(self, service, value):
        service.start("onboarding")
        service.submit_user_response(2, "Robin")
        with pytest.raises(InvalidResponseError):
            service.submit_user_response(4, value)
        # 匹配失败后仍然等待同一条消息
        assert service.submit_user_response(4, "Tea").complete

    def test_earlier_message_rejected_after_moving_on(self, state, service):
        service.start("onboarding")
        service.submit_user_response(2, "Robin")

        with pytest.raises(InvalidResponseError):
            service.submit_user_response(2, "Mallory")
        assert state.get("user.name") == "Robin"
        assert service.get_state_info()["interactionMessageId"] == 4

    def test_response_before_start_rejected(self, service):
        with pytest.raises(InvalidResponseError):
            service.submit_user_response(2, "Robin")

    def test_response_after_completion_rejected(self, state, service):
        service.start("onboarding")
        service.submit_user_response(2, "Robin")
        assert service.submit_user_response(4, "Coffee").complete

        with pytest.raises(InvalidResponseError):
            service.submit_user_response(4, "Tea")
        assert state.get("user.drink") == "coffee"

    def test_numeric_choice_labels_match_text_first(self, source, state, make_service):
        source.add("rating", make_sequence("rating", [
            {"id": 1, "type": "choice", "text": "Rate it", "storeKey": "user.rating", "choices": [
                {"text": "1", "nextMessageId": 11},
                {"text": "2", "nextMessageId": 12},
                {"text": "3", "nextMessageId": 13},
            ]},
            {"id": 11, "text": "Sorry to hear."},
            {"id": 12, "text": "Thanks."},
            {"id": 13, "text": "Glad you liked it!"},
        ]))
        service = make_service()
        service.start("rating")
        result = service.submit_user_response(1, 1)

        assert state.get("user.rating") == "1"
        assert texts(result)[0] == "Sorry to hear."

    def test_integer_falls_back_to_index(self, state, service):
        service.start("onboarding")
        service.submit_user_response(2, "Robin")
        result = service.submit_user_response(4, 1)

        assert state.get("user.drink") == "Tea"
        assert texts(result) == ["Tea it is."]

    def test_transcript_records_user_replies(self, service):
        service.start("onboarding")
        service.submit_user_response(2, "Robin")

        user_lines = [m for m in service.transcript if m.sender == Config.USER_SENDER]
        assert [m.text for m in user_lines] == ["Robin"]
        assert service.transcript[0].text == "Hi!"


class TestEventsAndState:

    def test_trigger_reaches_listener(self, source, make_service):
        source.add("events", make_sequence("events", [
            {"id": 1, "type": "dataAction", "dataActions": [
                {"type": "trigger", "key": "user.milestone", "event": "milestone", "data": {"count": 3}},
            ]},
            {"id": 2, "text": "done"},
        ]))
        service = make_service()
        received = []
        service.on_event(lambda event, data: received.append((event, data)))

        service.start("events")
        assert received == [("milestone", {"count": 3})]

    def test_sequence_listener(self, service):
        changes = []
        service.on_sequence_changed(changes.append)
        service.start("onboarding")
        assert changes == ["onboarding"]

    def test_state_info(self, service):
        service.start("onboarding")
        service.submit_user_response(2, "Robin")
        info = service.get_state_info()

        assert info["sequenceId"] == "onboarding"
        assert info["awaitingInteraction"] is True
        assert info["interactionMessageId"] == 4
        assert info["state"] == {"user.name": "Robin"}

    def test_available_sequences(self, service):
        assert service.available_sequences() == ["onboarding", "surprise"]
