"""
单元测试: 流程编排器 (FlowOrchestrator)
"""

import pytest

from chatflow.exceptions import EmptySequenceError, SequenceLoadError, WalkDepthExceededError
from chatflow.flow import FlowOrchestrator, MessageWalker
from conftest import make_sequence, texts


@pytest.fixture
def load(source, sequences):
    """注册并激活一个序列"""
    def _load(sequence_id, messages):
        source.add(sequence_id, make_sequence(sequence_id, messages))
        sequences.load(sequence_id)
    return _load


class TestNaturalStops:

    def test_stops_at_choice(self, load, orchestrator):
        load("main", [
            {"id": 1, "text": "Hello|||there"},
            {"id": 2, "type": "choice", "text": "Ready?", "choices": [{"text": "Yes"}]},
        ])
        result = orchestrator.process_from(1)

        assert result.awaiting_interaction
        assert result.interaction_message_id == 2
        assert not result.complete
        assert result.sequence_id == "main"
        assert texts(result) == ["Hello", "there", "Ready?"]

    def test_completes_at_end_of_chain(self, load, orchestrator):
        load("main", [{"id": 1, "text": "one"}, {"id": 2, "text": "two"}])
        result = orchestrator.process_from(1)

        assert result.complete
        assert not result.awaiting_interaction
        assert texts(result) == ["one", "two"]


class TestRoutingAndActions:

    def test_data_actions_feed_autoroute(self, state, load, orchestrator):
        load("main", [
            {"id": 1, "type": "dataAction", "dataActions": [{"key": "user.level", "value": 5}]},
            {"id": 2, "text": "Checking..."},
            {"id": 3, "type": "autoroute", "routes": [
                {"condition": "user.level >= 5", "nextMessageId": 10},
                {"default": True, "nextMessageId": 20},
            ]},
            {"id": 10, "text": "High level, {user.level}", "nextMessageId": 30},
            {"id": 20, "text": "Low level"},
        ])
        result = orchestrator.process_from(1)

        assert result.complete
        assert texts(result) == ["Checking...", "High level, 5"]
        assert state.get("user.level") == 5

    def test_autoroute_into_interaction(self, state, load, orchestrator):
        state.set("user.hasTask", False)
        load("main", [
            {"id": 1, "type": "autoroute", "routes": [
                {"condition": "user.hasTask == true", "nextMessageId": 5},
                {"default": True, "nextMessageId": 8},
            ]},
            {"id": 8, "type": "textInput", "text": "What's on your mind?"},
        ])
        result = orchestrator.process_from(1)
        assert result.awaiting_interaction
        assert result.interaction_message_id == 8

    def test_rendering_sees_state_from_later_actions(self, load, orchestrator):
        # 累积的消息在最后统一渲染
        load("main", [
            {"id": 1, "text": "Hi {user.name|stranger}"},
            {"id": 2, "type": "dataAction", "dataActions": [{"key": "user.name", "value": "Robin"}]},
        ])
        assert texts(orchestrator.process_from(1)) == ["Hi Robin"]


class TestSequenceTransitions:

    def test_boundary_continues_in_new_sequence(self, source, sequences, load, orchestrator):
        source.add("second", make_sequence("second", [
            {"id": 100, "text": "Welcome to part two"},
            {"id": 101, "type": "choice", "text": "Continue?", "choices": [{"text": "Yes"}]},
        ]))
        load("main", [{"id": 1, "text": "Part one"}, {"id": 2, "text": "Moving on", "sequenceId": "second"}])

        result = orchestrator.process_from(1)

        assert texts(result) == ["Part one", "Moving on", "Welcome to part two", "Continue?"]
        assert result.interaction_message_id == 101
        assert result.sequence_id == "second"
        assert sequences.current_sequence_id == "second"

    def test_route_switches_sequence(self, source, sequences, load, orchestrator):
        source.add("branch", make_sequence("branch", [{"id": 1, "text": "In branch"}]))
        load("main", [
            {"id": 1, "text": "Start"},
            {"id": 2, "type": "autoroute", "routes": [{"default": True, "sequenceId": "branch"}]},
        ])

        result = orchestrator.process_from(1)
        assert result.complete
        assert texts(result) == ["Start", "In branch"]
        assert sequences.current_sequence_id == "branch"

    def test_failed_boundary_load_propagates(self, sequences, load, orchestrator):
        load("main", [{"id": 1, "sequenceId": "missing"}])
        with pytest.raises(SequenceLoadError):
            orchestrator.process_from(1)
        assert sequences.current_sequence_id == "main"

    def test_empty_target_sequence(self, source, load, orchestrator):
        source.add("empty", make_sequence("empty", []))
        load("main", [{"id": 1, "sequenceId": "empty"}])
        with pytest.raises(EmptySequenceError):
            orchestrator.process_from(1)


class TestSafetyLimits:

    def test_walk_depth_is_fatal(self, load, orchestrator):
        load("main", [{"id": 1}, {"id": 2, "nextMessageId": 1}])
        with pytest.raises(WalkDepthExceededError):
            orchestrator.process_from(1)

    def test_cycle_limit_truncates(self, load, router, sequences, renderer):
        load("main", [
            {"id": 1, "text": "loop"},
            {"id": 2, "type": "autoroute", "routes": [{"default": True, "nextMessageId": 1}]},
        ])
        orchestrator = FlowOrchestrator(MessageWalker(), router, sequences, renderer, max_cycles=3)

        result = orchestrator.process_from(1)

        assert not result.complete
        assert not result.awaiting_interaction
        assert texts(result) == ["loop", "loop", "loop"]

    def test_default_cycle_limit(self, load, orchestrator):
        load("main", [
            {"id": 1, "text": "again"},
            {"id": 2, "type": "autoroute", "routes": [{"default": True, "nextMessageId": 1}]},
        ])
        result = orchestrator.process_from(1)
        assert not result.complete
        assert len(result.messages) == 25
