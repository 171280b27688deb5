"""Tests for the preview helpers.

``_resolve_soundfont`` must honour the ``SOUND_FONT`` environment variable
and fall back to sensible defaults on each platform.  ``play_midi`` is driven
through a stand-in ``fluidsynth`` module and ``open_default_player`` through a
patched ``subprocess.run`` so no audio device is needed.
"""

import subprocess
import sys
import types
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from midi_seed_gen import playback  # noqa: E402  # isort:skip

_resolve_soundfont = playback._resolve_soundfont
MidiPlaybackError = playback.MidiPlaybackError


def test_resolve_soundfont_env_variable(tmp_path, monkeypatch):
    sf = tmp_path / "custom.sf2"
    sf.write_text("soundfont")
    monkeypatch.setenv("SOUND_FONT", str(sf))

    assert Path(_resolve_soundfont(None)) == sf


def test_resolve_soundfont_argument_wins(tmp_path, monkeypatch):
    arg = tmp_path / "arg.sf2"
    arg.write_text("soundfont")
    monkeypatch.setenv("SOUND_FONT", "/non/existent/env.sf2")

    assert Path(_resolve_soundfont(str(arg))) == arg


def test_resolve_soundfont_expands_user(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    sf = home / "font.sf2"
    sf.write_text("soundfont")
    monkeypatch.setenv("HOME", str(home))

    assert Path(_resolve_soundfont("~/font.sf2")) == sf


def test_resolve_soundfont_missing_file(monkeypatch):
    monkeypatch.setenv("SOUND_FONT", "/non/existent/path.sf2")

    with pytest.raises(MidiPlaybackError, match="SoundFont not found"):
        _resolve_soundfont(None)


@pytest.mark.parametrize(
    "platform,expected",
    [
        ("win32", r"C:\\Windows\\System32\\drivers\\gm.dls"),
        ("darwin", "/Library/Audio/Sounds/Banks/FluidR3_GM.sf2"),
        ("linux", "/usr/share/sounds/sf2/TimGM6mb.sf2"),
    ],
)
def test_resolve_soundfont_platform_defaults(monkeypatch, platform, expected):
    monkeypatch.delenv("SOUND_FONT", raising=False)
    monkeypatch.setattr(playback.sys, "platform", platform, raising=False)
    monkeypatch.setattr(playback.os.path, "isfile", lambda path: path == expected)

    assert _resolve_soundfont(None) == expected


def _fake_fluidsynth(calls, fail_on=None):
    module = types.ModuleType("fluidsynth")

    class Synth:
        def start(self):
            calls.append("start")
            if fail_on == "start":
                raise RuntimeError("no audio")

        def sfload(self, path):
            calls.append(("sfload", path))
            return 1

        def program_select(self, chan, sfid, bank, preset):
            calls.append(("program_select", chan, sfid))

        def play_midi_file(self, path):
            calls.append(("play", path))
            if fail_on == "play":
                raise RuntimeError("bad file")

        def delete(self):
            calls.append("delete")

    module.Synth = Synth
    return module


def test_play_midi_drives_synth(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setitem(sys.modules, "fluidsynth", _fake_fluidsynth(calls))
    monkeypatch.setattr(playback, "_resolve_soundfont", lambda sf: "/fonts/gm.sf2")

    playback.play_midi("song.mid")

    assert calls == [
        "start",
        ("sfload", "/fonts/gm.sf2"),
        ("program_select", 0, 1),
        ("play", "song.mid"),
        "delete",
    ]


@pytest.mark.parametrize("stage,message", [("start", "audio driver"), ("play", "Playback failed")])
def test_play_midi_failures_release_synth(monkeypatch, stage, message):
    calls = []
    monkeypatch.setitem(sys.modules, "fluidsynth", _fake_fluidsynth(calls, fail_on=stage))
    monkeypatch.setattr(playback, "_resolve_soundfont", lambda sf: "/fonts/gm.sf2")

    with pytest.raises(MidiPlaybackError, match=message):
        playback.play_midi("song.mid")
    assert calls[-1] == "delete"


def test_play_midi_without_pyfluidsynth(monkeypatch):
    # ``None`` in ``sys.modules`` makes the import raise ``ImportError``.
    monkeypatch.setitem(sys.modules, "fluidsynth", None)

    with pytest.raises(MidiPlaybackError, match="pyFluidSynth is required"):
        playback.play_midi("song.mid")


def test_open_default_player_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        playback.open_default_player(str(tmp_path / "missing.mid"))


@pytest.mark.parametrize(
    "platform,expected_prefix",
    [
        ("win32", ["cmd", "/c", "start", "/wait", ""]),
        ("darwin", ["open", "-W"]),
        ("linux", ["xdg-open"]),
    ],
)
def test_open_default_player_commands(tmp_path, monkeypatch, platform, expected_prefix):
    midi = tmp_path / "song.mid"
    midi.write_bytes(b"MThd")
    seen = {}

    def fake_run(cmd, **kwargs):
        seen["cmd"] = cmd
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.delenv(playback.PLAYER_ENV, raising=False)
    monkeypatch.setattr(playback.sys, "platform", platform, raising=False)
    monkeypatch.setattr(playback.subprocess, "run", fake_run)

    playback.open_default_player(str(midi))

    assert seen["cmd"] == expected_prefix + [str(midi)]


def test_open_default_player_custom_command(tmp_path, monkeypatch):
    midi = tmp_path / "song.mid"
    midi.write_bytes(b"MThd")
    seen = {}

    def fake_run(cmd, **kwargs):
        seen["cmd"] = cmd
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.setenv(playback.PLAYER_ENV, '"/opt/My Player/timidity" -ig')
    monkeypatch.setattr(playback.sys, "platform", "linux", raising=False)
    monkeypatch.setattr(playback.subprocess, "run", fake_run)

    playback.open_default_player(str(midi))

    assert seen["cmd"] == ["/opt/My Player/timidity", "-ig", str(midi)]


def test_open_default_player_nonzero_exit(tmp_path, monkeypatch):
    midi = tmp_path / "song.mid"
    midi.write_bytes(b"MThd")

    monkeypatch.setattr(playback.sys, "platform", "linux", raising=False)
    monkeypatch.setattr(
        playback.subprocess,
        "run",
        lambda cmd, **kw: subprocess.CompletedProcess(cmd, 3, "", "no handler"),
    )

    with pytest.raises(MidiPlaybackError, match="no handler"):
        playback.open_default_player(str(midi))
