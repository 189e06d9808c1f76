"""Tests for core data models."""

import pytest

from sleigh_kernel.models import (
    AgentPosition,
    AutopilotConfig,
    ChatMessage,
    ChatRole,
    ComplianceStage,
    ComplianceState,
    DraftSections,
    MapState,
    MessageOrigin,
    Waypoint,
)


class TestWaypoint:
    def test_create_waypoint(self):
        waypoint = Waypoint(id="house-1", label="House 1", x=12.5, y=40.0)
        assert waypoint.delivered is False
        assert waypoint.label == "House 1"

    def test_coordinate_bounds(self):
        with pytest.raises(Exception):
            Waypoint(id="bad", label="Bad", x=-1, y=50)

        with pytest.raises(Exception):
            Waypoint(id="bad", label="Bad", x=50, y=101)


class TestAgentPosition:
    def test_default_start(self):
        position = AgentPosition()
        assert (position.x, position.y) == (48.0, 30.0)

    def test_rejects_out_of_bounds(self):
        with pytest.raises(Exception):
            AgentPosition(x=0.5, y=50)

        with pytest.raises(Exception):
            AgentPosition(x=50, y=99.5)


class TestMapState:
    def test_defaults(self):
        state = MapState()
        assert state.waypoints == []
        assert state.target_id is None


class TestComplianceState:
    def test_created_inactive(self):
        state = ComplianceState()
        assert state.active is False
        assert state.agency is None
        assert state.stage == ComplianceStage.IDLE

    def test_stage_values(self):
        assert [s.value for s in ComplianceStage] == [
            "idle", "alert", "drafting", "ready", "submitted",
        ]

    def test_serialization(self):
        state = ComplianceState(active=True, agency="FAA", stage=ComplianceStage.ALERT)
        assert state.model_dump(mode="json") == {
            "active": True, "agency": "FAA", "stage": "alert",
        }


class TestChatMessage:
    def test_to_wire_drops_origin(self):
        message = ChatMessage(
            role=ChatRole.ASSISTANT, content="Hi", origin=MessageOrigin.INCIDENT
        )
        assert message.to_wire() == {"role": "assistant", "content": "Hi"}


class TestDraftSections:
    def test_empty_by_default(self):
        draft = DraftSections()
        assert draft.is_empty
        assert draft.references == []


class TestAutopilotConfig:
    def test_defaults(self):
        config = AutopilotConfig()
        assert config.motion.speed_per_second == 22.0
        assert config.motion.arrival_radius == 1.4
        assert config.motion.max_step_seconds == 0.05
        assert config.scheduler.first_delay_seconds == 5.0
        assert config.scheduler.interval_seconds == 20.0
        assert config.scheduler.window.always is True
        assert config.session.reset_delay_seconds == 1.6
        assert config.session.allow_submit_without_validation is False
        assert config.generator.count == 200
        assert config.generator.attempts_per_waypoint == 80
        assert config.log.window == 13

    def test_speed_must_be_positive(self):
        with pytest.raises(Exception):
            AutopilotConfig(motion={"speed_per_second": 0})
