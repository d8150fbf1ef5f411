from __future__ import annotations

import pytest

from formation_leader.core.position_store import PositionStore
from formation_leader.main import build_transport, main
from formation_leader.settings import AppConfig
from formation_leader.sim.pair import SimulatedPair


def test_sim_transport_seeds_both_fixes():
    cfg = AppConfig()
    store = PositionStore()
    executor, telemetry, actuator, closers = build_transport("sim", cfg, store)
    try:
        assert isinstance(executor, SimulatedPair)
        assert telemetry is executor and actuator is executor
        snap = store.snapshot()
        assert snap.self_fix.latitude == cfg.sim.self_lat
        assert snap.neighbor_fix.longitude == cfg.sim.neighbor_lon
        assert executor.dt_s == pytest.approx(0.1)
    finally:
        for close in closers:
            close()


def test_cli_requires_subcommand():
    with pytest.raises(SystemExit):
        main([])


def test_cli_returns_exit_status_2_when_takeoff_times_out(tmp_path, monkeypatch):
    cfg_path = tmp_path / "cfg.yaml"
    cfg_path.write_text(
        "formation:\n  takeoff_timeout_s: 0.05\nsim:\n  climb_time_s: 5.0\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    assert main(["run", "--transport", "sim", "--config", str(cfg_path), "--no-log-file"]) == 2
