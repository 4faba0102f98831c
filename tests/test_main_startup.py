"""Startup paths of the command line entry point."""
from __future__ import annotations

import sys
from types import SimpleNamespace

import pytest

import main
from game import LogisticsSim


def _pygame_without(display_ready: bool = False, window_error: str | None = None):
    """A pygame stand-in whose display either never comes up or refuses a window."""

    class WindowError(Exception):
        pass

    def set_mode(size):
        raise WindowError(window_error)

    display = SimpleNamespace(init=lambda: None, get_init=lambda: display_ready, set_mode=set_mode)
    return SimpleNamespace(init=lambda: None, display=display, error=WindowError)


def test_missing_pygame_points_to_headless(monkeypatch):
    monkeypatch.setattr(main, "pygame", None)

    with pytest.raises(RuntimeError, match="--headless"):
        main.GameUI(LogisticsSim())


def test_display_that_never_initialises_points_to_headless(monkeypatch):
    monkeypatch.setattr(main, "pygame", _pygame_without(display_ready=False))

    with pytest.raises(RuntimeError, match="Display subsystem is unavailable"):
        main.GameUI(LogisticsSim())


def test_window_refused_points_to_headless(monkeypatch):
    monkeypatch.setattr(main, "pygame", _pygame_without(display_ready=True, window_error="no video device"))

    with pytest.raises(RuntimeError, match="no video device.*--headless"):
        main.GameUI(LogisticsSim())


def test_graphical_start_failure_exits_with_status_one(monkeypatch, capsys, tmp_path):
    def refuse(sim):
        raise RuntimeError("Display subsystem is unavailable. Relaunch with --headless.")

    monkeypatch.setattr(main, "GameUI", refuse)
    monkeypatch.setattr(sys, "argv", ["fleetline", "--settings", str(tmp_path / "settings.json")])

    with pytest.raises(SystemExit) as exc:
        main.main()

    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("Startup error: Display subsystem is unavailable")


def test_headless_run_prints_summary(monkeypatch, capsys, tmp_path):
    settings = tmp_path / "settings.json"
    monkeypatch.setattr(
        sys, "argv", ["fleetline", "--headless", "--ticks", "30", "--seed", "3", "--settings", str(settings)]
    )

    main.main()

    out = capsys.readouterr().out
    assert out.startswith("headless_done t=30.0")
    assert "level=1" in out
    assert settings.exists()


def test_run_headless_without_settings_file_uses_memory():
    sim = main.run_headless(ticks=5, dt=2.0, seed=9)

    assert sim.time == 10.0
    assert sim.state.status == "tutorial"
