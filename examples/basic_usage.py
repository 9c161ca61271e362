#!/usr/bin/env python3
"""
Basic Usage Example - Tomato Clock timer core

This script drives the timer engine the way a popup or CLI would. It shows
how to:
- Initialize the engine with in-memory storage
- Send commands and read back state
- Walk through a full four-pomodoro cycle
- Simulate a restart after the deadline passed
- Inspect history, statistics and exports

A simulated clock is used so the example finishes instantly.

Run: python examples/basic_usage.py
"""

import json
from datetime import datetime
from typing import Any

from tomato_app.engine import TomatoClockEngine
from tomato_app.persistence.kv_store import InMemoryKeyValueStore, StorageScope


class SimulatedClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self) -> None:
        self.now_ms = int(datetime(2024, 1, 15, 9, 0).timestamp() * 1000)

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: int) -> None:
        self.now_ms += seconds * 1000


def print_state(label: str, response: dict[str, Any]) -> None:
    data = response["data"]
    status = "running" if data["running"] else "paused"
    print(f"  {label:<22} {data['phase']:<12} cycle {data['cycle']}  {data['display_time']}  ({status})")


def run_full_cycle(engine: TomatoClockEngine, clock: SimulatedClock) -> None:
    print("\n⏱  Full cycle (4 work phases)")
    for _ in range(8):
        started = engine.handle_command({"type": "Start"})
        clock.advance(started["data"]["time_remaining"])
        engine.service.tick()
        print_state("phase complete ->", engine.handle_command({"type": "GetState"}))


def simulate_restart(local: InMemoryKeyValueStore, synced: InMemoryKeyValueStore,
                     clock: SimulatedClock) -> None:
    print("\n💤 Restart after the deadline passed")
    engine = TomatoClockEngine(
        overrides={"storage": {"backend": "memory"}},
        local_store=local, synced_store=synced, clock=clock
    )
    engine.start(run_tick_loop=False)
    started = engine.handle_command({"type": "Start"})
    print_state("started", started)
    engine.shutdown()

    clock.advance(started["data"]["time_remaining"] + 90)

    engine = TomatoClockEngine(
        overrides={"storage": {"backend": "memory"}},
        local_store=local, synced_store=synced, clock=clock
    )
    engine.start(run_tick_loop=False)
    print_state("after recovery", engine.handle_command({"type": "GetState"}))
    engine.shutdown()


def main() -> None:
    print("🍅 Tomato Clock - basic usage")

    clock = SimulatedClock()
    local = InMemoryKeyValueStore(StorageScope.LOCAL)
    synced = InMemoryKeyValueStore(StorageScope.SYNCED)

    engine = TomatoClockEngine(
        overrides={"storage": {"backend": "memory"}, "notifications": {"sound_enabled": False}},
        local_store=local,
        synced_store=synced,
        clock=clock
    )
    engine.subscribe(lambda update: None)
    engine.start(run_tick_loop=False)

    print_state("initial", engine.handle_command({"type": "GetState"}))
    engine.handle_command({"type": "SetCategory", "label": "writing"})

    started = engine.handle_command({"type": "Start"})
    print_state("started", started)
    clock.advance(300)
    engine.service.tick()
    print_state("paused after 5 min", engine.handle_command({"type": "Pause"}))
    engine.handle_command({"type": "Reset"})

    rejected = engine.handle_command({"type": "UpdateSettings", "settings": {"work_minutes": 90}})
    print(f"\n⚠️  UpdateSettings(work_minutes=90): {rejected['error']}")

    run_full_cycle(engine, clock)
    engine.shutdown()

    simulate_restart(local, synced, clock)

    engine = TomatoClockEngine(
        overrides={"storage": {"backend": "memory"}},
        local_store=local, synced_store=synced, clock=clock
    )
    engine.start(run_tick_loop=False)

    stats = engine.handle_command({"type": "GetStats"})["data"]
    print("\n📊 Statistics")
    print(json.dumps(stats, indent=2))

    export = engine.handle_command({"type": "ExportHistory", "format": "csv"})["data"]
    print("\n📄 CSV export")
    print(export["content"])
    engine.shutdown()


if __name__ == "__main__":
    main()
