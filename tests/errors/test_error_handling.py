"""
Error handling tests for the timer core.

Tests cover the error hierarchy, bad persisted data and collaborator
failures that the core must survive.
"""

import pytest
from unittest.mock import patch

from tomato_app.errors import (
    CommandError,
    DataQualityError,
    DeliveryError,
    MalformedDataError,
    MissingDataError,
    PersistenceError,
    SchedulerError,
    SettingsValidationError,
    StateTransitionError,
    SystemFailureError,
)
from tomato_app.config.defaults import TIMER_STATE_KEY
from tomato_app.delivery.base import BaseNotificationDelivery, NotificationDispatcher
from tomato_app.persistence.kv_store import StorageScope
from tomato_app.persistence.timer_store import TimerStore
from tomato_app.state.models import Phase

from conftest import FailingStore


class BrokenDelivery(BaseNotificationDelivery):
    """Delivery whose every attempt raises."""

    def __init__(self):
        super().__init__("broken")

    def deliver(self, notification):
        raise DeliveryError("device gone", delivery_method=self.name)

    def health_check(self):
        return False


class TestErrorClassification:
    """Test error classification system."""

    def test_data_quality_error_hierarchy(self):
        base_error = DataQualityError("base error")
        assert base_error.recoverable is True
        assert base_error.context == {}

        missing = MissingDataError("no settings", data_type="timer_settings")
        assert isinstance(missing, DataQualityError)
        assert missing.data_type == "timer_settings"

        malformed = MalformedDataError("bad", raw_data="{}", expected_format="dict",
                                       context={"key": "timer_state"})
        assert malformed.expected_format == "dict"
        assert malformed.context == {"key": "timer_state"}

        invalid = SettingsValidationError("bad settings", errors=["work_minutes"])
        assert isinstance(invalid, DataQualityError)
        assert invalid.errors == ["work_minutes"]

    def test_system_failure_hierarchy(self):
        for error in (
            StateTransitionError("x", current_state="work@1", attempted_transition="work@2"),
            PersistenceError("x", operation="write", target="local.json"),
            DeliveryError("x", delivery_method="stdout"),
            SchedulerError("x", alarm_name="tomato-timer"),
        ):
            assert isinstance(error, SystemFailureError)
            assert error.recoverable is False

    def test_command_error(self):
        command = CommandError("bad command", command_type="Start")
        assert command.command_type == "Start"


class TestCorruptPersistedData:
    """Test recovery from bad stored payloads."""

    @pytest.mark.parametrize("payload", [
        "garbage",
        {"running": True, "phase": "work", "cycle": 1, "time_remaining": "soon"},
        {"running": True, "phase": "coffee", "cycle": 1, "time_remaining": 10},
        [1, 2, 3],
    ])
    def test_corrupt_state_recovers_to_fresh(self, make_service, local_store, payload):
        local_store.set(TIMER_STATE_KEY, payload)
        service = make_service()

        state = service.recover()

        assert state.phase == Phase.WORK
        assert state.cycle == 1
        assert state.running is False
        assert local_store.get(TIMER_STATE_KEY) == state.to_dict()

    def test_running_without_deadline_is_treated_as_paused(self, make_service, local_store, scheduler):
        local_store.set(TIMER_STATE_KEY, {"running": True, "phase": "short-break",
                                          "cycle": 2, "time_remaining": 100, "end_time": None})
        service = make_service()

        state = service.recover()

        assert state.running is False
        assert state.time_remaining == 100
        assert scheduler.armed == {}


class TestCollaboratorFailures:
    """Test that collaborator failures never stop the timer."""

    def test_all_storage_failing(self, make_service, clock):
        store = TimerStore(local=FailingStore(StorageScope.LOCAL), synced=FailingStore())
        service = make_service(store=store)
        service.recover()

        service.start()
        clock.advance(1500)
        service.on_complete("alarm")

        assert service.state.phase == Phase.SHORT_BREAK
        assert len(service.get_history()) == 1
        assert service.clear_history() is False

    def test_notifier_failure_does_not_block_transition(self, make_service):
        service = make_service(notifier=NotificationDispatcher([BrokenDelivery()]))
        service.recover()

        state = service.skip()

        assert state.phase == Phase.SHORT_BREAK
        assert len(service.get_history()) == 1

    def test_observer_failure_is_isolated(self, service):
        received = []

        def broken(update):
            raise RuntimeError("listener gone")

        service.broadcaster.subscribe(broken)
        service.broadcaster.subscribe(received.append)

        service.start()

        assert service.state.running is True
        assert len(received) == 1

    def test_alarm_callback_exception_is_contained(self, service, scheduler):
        service.start()

        with patch.object(service, "on_complete", side_effect=RuntimeError("bad")):
            scheduler.fire("tomato-timer")

        assert service.state.running is True
