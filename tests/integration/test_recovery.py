"""
Integration tests for persistence and restart recovery.

Each test drives a timer service against file-backed stores, throws the
service away to simulate the host suspending the process, and builds a
new one over the same files.
"""

import json
import pytest

from tomato_app.history.session_log import SessionHistory
from tomato_app.persistence.kv_store import JsonFileKeyValueStore, StorageScope
from tomato_app.persistence.timer_store import TimerStore
from tomato_app.state.models import Phase, TimerSettings
from tomato_app.state.runtime import TimerService

from conftest import BASE_TIME_MS, FakeClock, RecordingScheduler

pytestmark = pytest.mark.integration


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def clock():
    return FakeClock(BASE_TIME_MS)


def _boot(data_dir, clock, scheduler=None, capacity=1000):
    """Build and recover a service over the on-disk stores."""
    store = TimerStore(
        local=JsonFileKeyValueStore(data_dir / "local.json", scope=StorageScope.LOCAL),
        synced=JsonFileKeyValueStore(data_dir / "synced.json", scope=StorageScope.SYNCED),
    )
    service = TimerService(
        store=store,
        scheduler=scheduler or RecordingScheduler(),
        history=SessionHistory(store, capacity=capacity),
        settings=TimerSettings(),
        clock=clock,
    )
    service.recover()
    return service


class TestRestartRecovery:
    """Test reconciliation of a persisted deadline on restart."""

    def test_running_phase_resumes_with_rearmed_alarm(self, data_dir, clock):
        first = _boot(data_dir, clock)
        first.start()

        clock.advance(600.25)
        scheduler = RecordingScheduler()
        second = _boot(data_dir, clock, scheduler)

        state = second.get_state()
        assert state.running is True
        assert state.time_remaining == 899
        assert scheduler.armed["tomato-timer"] == pytest.approx(899.75)

    def test_deadline_passed_during_suspension_completes_once(self, data_dir, clock):
        first = _boot(data_dir, clock)
        first.start()

        clock.advance(1500 + 90)
        second = _boot(data_dir, clock)

        assert second.state.phase == Phase.SHORT_BREAK
        assert second.state.cycle == 1
        assert second.state.running is False
        assert len(second.get_history()) == 1

        # A second restart finds the completed state and does nothing more
        third = _boot(data_dir, clock)
        assert third.state == second.state
        assert len(third.get_history()) == 1

    def test_long_suspension_does_not_replay_phases(self, data_dir, clock):
        first = _boot(data_dir, clock)
        first.start()

        clock.advance(6 * 3600)
        second = _boot(data_dir, clock)

        assert (second.state.phase, second.state.cycle) == (Phase.SHORT_BREAK, 1)

    def test_paused_phase_survives_restart(self, data_dir, clock):
        first = _boot(data_dir, clock)
        first.start()
        clock.advance(300)
        first.tick()
        first.pause()

        clock.advance(3600)
        second = _boot(data_dir, clock)

        assert second.state.running is False
        assert second.state.time_remaining == 1200

    def test_settings_category_and_history_survive(self, data_dir, clock):
        first = _boot(data_dir, clock)
        first.update_settings({"work_minutes": 45, "short_break_minutes": 10})
        first.set_category("writing")
        first.skip()

        second = _boot(data_dir, clock)

        assert second.get_settings() == TimerSettings(45, 10, 15)
        assert second.category == "writing"
        assert second.get_history()[0].category == "writing"
        assert second.state.time_remaining == 600

        synced = json.loads((data_dir / "synced.json").read_text())
        assert set(synced) == {"timer_settings", "current_category", "session_history"}
        local = json.loads((data_dir / "local.json").read_text())
        assert set(local) == {"timer_state"}

    def test_corrupt_local_file_starts_fresh(self, data_dir, clock):
        first = _boot(data_dir, clock)
        first.skip()
        (data_dir / "local.json").write_text("{truncated")

        second = _boot(data_dir, clock)

        assert second.state.phase == Phase.WORK
        assert second.state.cycle == 1
        assert len(second.get_history()) == 1

        # The first write after the corrupt boot replaces the document
        second.skip()
        second.skip()
        third = _boot(data_dir, clock)

        assert (third.state.phase, third.state.cycle) == (Phase.WORK, 2)
        assert len(third.get_history()) == 2
        assert (data_dir / "local.json.corrupt").read_text() == "{truncated"

    def test_non_utf8_local_file_starts_fresh(self, data_dir, clock):
        data_dir.mkdir()
        (data_dir / "local.json").write_bytes(b'{"timer_state": "\xff\xfe"}')

        service = _boot(data_dir, clock)

        assert service.state.phase == Phase.WORK
        assert service.state.running is False
        assert json.loads((data_dir / "local.json").read_text())["timer_state"]["cycle"] == 1

    def test_invalid_synced_settings_use_defaults(self, data_dir, clock):
        data_dir.mkdir()
        (data_dir / "synced.json").write_text(json.dumps({"timer_settings": {"work_minutes": None}}))

        service = _boot(data_dir, clock)
        state = service.start()

        assert service.get_settings() == TimerSettings()
        assert state.time_remaining == 1500


class TestFullCycle:
    """Test a complete four-pomodoro cycle with restarts in between."""

    def test_cycle_with_restart_after_every_phase(self, data_dir, clock):
        seen = []
        for _ in range(8):
            service = _boot(data_dir, clock)
            service.start()
            clock.advance(service.state.time_remaining)
            service.on_complete("alarm")
            seen.append((service.state.phase, service.state.cycle))

        assert seen == [
            (Phase.SHORT_BREAK, 1), (Phase.WORK, 2),
            (Phase.SHORT_BREAK, 2), (Phase.WORK, 3),
            (Phase.SHORT_BREAK, 3), (Phase.WORK, 4),
            (Phase.LONG_BREAK, 4), (Phase.WORK, 5),
        ]
        assert len(_boot(data_dir, clock).get_history()) == 4

    def test_history_capacity_on_disk(self, data_dir, clock):
        service = _boot(data_dir, clock, capacity=5)
        for _ in range(6):
            service.skip()                           # Work -> break
            service.skip()                           # Break -> work

        reloaded = _boot(data_dir, clock, capacity=5)

        assert len(reloaded.get_history()) == 5
        assert len(json.loads((data_dir / "synced.json").read_text())["session_history"]) == 5
