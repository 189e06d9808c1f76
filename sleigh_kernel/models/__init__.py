"""Sleigh Kernel data models."""

from sleigh_kernel.models.autopilot import (
    AutopilotConfig,
    EventWindow,
    GeneratorConfig,
    LogConfig,
    MotionConfig,
    SchedulerConfig,
    SessionConfig,
)
from sleigh_kernel.models.compliance import (
    ChatMessage,
    ChatRole,
    ComplianceStage,
    ComplianceState,
    DraftSections,
    MessageOrigin,
)
from sleigh_kernel.models.event_log import LogEntry
from sleigh_kernel.models.world import AgentPosition, MapState, Waypoint

__all__ = [
    "AgentPosition",
    "AutopilotConfig",
    "ChatMessage",
    "ChatRole",
    "ComplianceStage",
    "ComplianceState",
    "DraftSections",
    "EventWindow",
    "GeneratorConfig",
    "LogConfig",
    "LogEntry",
    "MapState",
    "MessageOrigin",
    "MotionConfig",
    "SchedulerConfig",
    "SessionConfig",
    "Waypoint",
]
