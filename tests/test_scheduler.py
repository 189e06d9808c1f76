"""Tests for the Interrupt Scheduler."""

import asyncio
import random
from datetime import datetime

from sleigh_kernel.compliance.scheduler import AGENCIES, InterruptScheduler, is_window_open
from sleigh_kernel.compliance.session import ComplianceSession
from sleigh_kernel.event_log.store import EventLog
from sleigh_kernel.models.autopilot import EventWindow, SchedulerConfig, SessionConfig
from sleigh_kernel.models.compliance import ComplianceStage
from sleigh_kernel.waypoints.generator import generate_waypoints
from sleigh_kernel.world_model.store import WorldModelStore


def _make_scheduler(waypoint_count=3, config=None):
    log = EventLog()
    session = ComplianceSession(event_log=log, config=SessionConfig(reset_delay_seconds=0))
    store = WorldModelStore(waypoints=generate_waypoints(waypoint_count))
    scheduler = InterruptScheduler(
        session=session,
        world_store=store,
        config=config or SchedulerConfig(),
        rng=random.Random(5),
    )
    return scheduler, session, store, log


class TestEventWindow:
    def test_always_open(self):
        assert is_window_open(EventWindow(), datetime(2026, 12, 24, 3, 0)) is True

    def test_cron_window(self):
        window = EventWindow(always=False, schedule="* 22-23 24 12 *")
        assert is_window_open(window, datetime(2026, 12, 24, 22, 15)) is True
        assert is_window_open(window, datetime(2026, 12, 24, 21, 59)) is False
        assert is_window_open(window, datetime(2026, 12, 25, 22, 15)) is False

    def test_invalid_cron_is_closed(self):
        window = EventWindow(always=False, schedule="not a cron")
        assert is_window_open(window, datetime(2026, 12, 24, 22, 15)) is False

    def test_no_schedule_is_closed(self):
        assert is_window_open(EventWindow(always=False), datetime(2026, 12, 24)) is False


class TestTriggerOnce:
    def test_starts_event(self):
        scheduler, session, _, log = _make_scheduler()
        assert scheduler.trigger_once() is True
        assert session.state.active is True
        assert session.stage == ComplianceStage.ALERT
        assert session.state.agency in AGENCIES
        assert scheduler.fired_count == 1
        assert "Deliveries paused." in log.latest().text

    def test_never_while_active(self):
        scheduler, session, _, _ = _make_scheduler()
        scheduler.trigger_once()
        agency = session.state.agency
        for _ in range(10):
            assert scheduler.trigger_once() is False
        assert session.state.agency == agency
        assert scheduler.fired_count == 1

    def test_never_when_all_delivered(self):
        scheduler, session, store, log = _make_scheduler()
        for waypoint in store.waypoints:
            store.mark_delivered(waypoint.id)
        entries = log.count()
        assert scheduler.trigger_once() is False
        assert session.state.active is False
        assert log.count() == entries

    def test_never_with_empty_map(self):
        scheduler, session, _, _ = _make_scheduler(waypoint_count=0)
        assert scheduler.trigger_once() is False

    def test_reads_latest_remaining_count(self):
        scheduler, _, store, _ = _make_scheduler(waypoint_count=1)
        store.mark_delivered("house-1")
        assert scheduler.trigger_once() is False

    def test_respects_window(self):
        config = SchedulerConfig(window=EventWindow(always=False, schedule="* 9 * * *"))
        scheduler, session, _, _ = _make_scheduler(config=config)
        assert scheduler.trigger_once(datetime(2026, 12, 24, 10, 0)) is False
        assert scheduler.trigger_once(datetime(2026, 12, 24, 9, 30)) is True

    def test_fires_again_after_reset(self):
        scheduler, session, _, _ = _make_scheduler()
        scheduler.trigger_once()
        session.start_drafting()
        session.config.allow_submit_without_validation = True
        session.submit()
        assert scheduler.trigger_once() is True
        assert scheduler.fired_count == 2


class TestRunAsync:
    def test_first_attempt_after_short_delay(self):
        config = SchedulerConfig(first_delay_seconds=0.01, interval_seconds=0.01)
        scheduler, session, _, _ = _make_scheduler(config=config)

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(scheduler.run_async(stop))
            await asyncio.sleep(0.1)
            assert scheduler.status == "running"
            stop.set()
            await task

        asyncio.run(scenario())
        assert scheduler.fired_count == 1
        assert session.state.active is True
        assert scheduler.status == "stopped"

    def test_no_firing_after_stop(self):
        config = SchedulerConfig(first_delay_seconds=0.05, interval_seconds=0.05)
        scheduler, session, _, _ = _make_scheduler(config=config)

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(scheduler.run_async(stop))
            await asyncio.sleep(0)
            stop.set()
            await task
            await asyncio.sleep(0.1)

        asyncio.run(scenario())
        assert scheduler.fired_count == 0
        assert session.state.active is False

    def test_cancellable(self):
        config = SchedulerConfig(first_delay_seconds=10)
        scheduler, _, _, _ = _make_scheduler(config=config)

        async def scenario():
            task = asyncio.create_task(scheduler.run_async())
            await asyncio.sleep(0.01)
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            return task.cancelled()

        assert asyncio.run(scenario()) is True
        assert scheduler.status == "stopped"
        assert scheduler.fired_count == 0
