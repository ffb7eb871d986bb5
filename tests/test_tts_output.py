"""Tests for the speech command wrapper."""

from __future__ import annotations

from smartstick.output.tts_output import TTSOutput


def test_disabled_engine_never_speaks() -> None:
    tts = TTSOutput(engine="none")

    assert tts.enabled is False
    assert tts.speak("hello") is False
    assert tts._current_process is None


def test_engine_commands(monkeypatch) -> None:
    monkeypatch.setattr("smartstick.output.tts_output.shutil.which", lambda name: f"/usr/bin/{name}")

    say = TTSOutput(engine="say", voice="Samantha", rate=180)
    espeak = TTSOutput(engine="auto")

    assert say._build_command("hi") == ["say", "-r", "180", "-v", "Samantha", "hi"]
    assert espeak.engine == "say"
    espeak.engine = "espeak"
    assert espeak._build_command("hi") == ["espeak", "-s", "200", "hi"]


def test_missing_engine_disables(monkeypatch) -> None:
    monkeypatch.setattr("smartstick.output.tts_output.shutil.which", lambda name: None)

    assert TTSOutput(engine="auto").enabled is False
