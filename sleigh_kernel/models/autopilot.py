"""Autopilot configuration — motion, scheduling, session and generation knobs."""

from typing import Optional

from pydantic import BaseModel, Field


class MotionConfig(BaseModel):
    """Configuration for the Motion Controller."""

    speed_per_second: float = Field(gt=0, default=22.0)
    arrival_radius: float = Field(gt=0, default=1.4)
    max_step_seconds: float = Field(gt=0, default=0.05)   # Caps dt after a stall
    min_coordinate: float = 1.0
    max_coordinate: float = 99.0
    frame_interval_seconds: float = Field(gt=0, default=1 / 60)


class EventWindow(BaseModel):
    """When compliance events may fire."""

    always: bool = True
    schedule: Optional[str] = None          # Cron expression


class SchedulerConfig(BaseModel):
    """Configuration for the Interrupt Scheduler."""

    first_delay_seconds: float = Field(ge=0, default=5.0)
    interval_seconds: float = Field(gt=0, default=20.0)
    window: EventWindow = EventWindow()


class SessionConfig(BaseModel):
    """Configuration for the Compliance Session."""

    reset_delay_seconds: float = Field(ge=0, default=1.6)
    allow_submit_without_validation: bool = False


class GeneratorConfig(BaseModel):
    """Configuration for the Waypoint Set Generator."""

    count: int = Field(ge=0, default=200)
    seed: int = 20241214
    attempts_per_waypoint: int = Field(ge=1, default=80)
    margin_min: float = 3.0
    margin_max: float = 97.0


class LogConfig(BaseModel):
    """Configuration for the Event Log."""

    window: int = Field(ge=1, default=13)
    retention: int = Field(ge=1, default=500)


class AutopilotConfig(BaseModel):
    """Everything the composition root needs."""

    motion: MotionConfig = MotionConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    session: SessionConfig = SessionConfig()
    generator: GeneratorConfig = GeneratorConfig()
    log: LogConfig = LogConfig()
