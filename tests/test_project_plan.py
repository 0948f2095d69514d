#!/usr/bin/env python3

"""
Dry-run coverage for the project pipeline and CLI with a fake ffprobe.
"""

# Standard Library
import os
import sys
import tempfile

# PIP3 modules
import pytest
import yaml

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
import beatmix_cli
from beatmixlib.core import utils
from beatmixlib.core.errors import ConcatenationFailure
from beatmixlib.core.errors import DurationOverflow
from beatmixlib.core.project import BeatMixProject
from beatmixlib.core.project import dump_timing_yaml
from beatmixlib.media import ffmpeg_concat
from beatmixlib.media import ffprobe
from beatmixlib.media import sox

#============================================

DURATIONS = {
	"voice-0.mp3": (5.0, True),
	"voice-1.mp3": (3.0, True),
	"voice-2.mp3": (2.0, True),
	"clip.mp4": (10.0, True),
	"voice-3.mp3": (4.0, True),
	"voice-4.mp3": (5.0, True),
}

#============================================

@pytest.fixture(autouse=True)
def fake_ffprobe(monkeypatch):
	def _probe(media: str) -> tuple:
		return DURATIONS[os.path.basename(media)]
	monkeypatch.setattr(ffprobe, "probe_media", _probe)
	utils.set_quiet_mode(True)
	yield
	utils.set_quiet_mode(False)

#============================================

def _write_yaml(path: str, beat_lines: list) -> None:
	"""
	Write a script yaml file with the given beats.
	"""
	lines = []
	lines.append("beatmix: 1")
	lines.append("presentation_style:")
	lines.append("  audio_params: {padding: 0.5, closing_padding: 1.0}")
	lines.append("beats:")
	lines.extend(beat_lines)
	lines.append("output:")
	lines.append("  file: combined.mp3")
	with open(path, "w") as yaml_file:
		yaml_file.write("\n".join(lines))
		yaml_file.write("\n")

#============================================

def test_dry_run_three_beats():
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = os.path.join(temp_dir, "script.yaml")
		_write_yaml(yaml_path, [
			"  - audio: voice-0.mp3",
			"  - audio: voice-1.mp3",
			"  - audio: voice-2.mp3",
		])
		project = BeatMixProject(yaml_path, dry_run=True)
		result = project.run()
		assert result.audio_file is None
		assert [beat.duration for beat in result.beats] == [5.5, 4.0, 2.0]
		assert [beat.start_at for beat in result.beats] == [0.0, 5.5, 9.5]

#============================================

def test_plan_inputs_for_voice_over_movie():
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = os.path.join(temp_dir, "script.yaml")
		_write_yaml(yaml_path, [
			"  - audio: voice-3.mp3",
			"    image: {type: movie, source: {kind: path, path: clip.mp4}}",
			"  - audio: voice-4.mp3",
			"    image: {type: voice_over}",
		])
		plan = BeatMixProject(yaml_path, dry_run=True).plan()
		assert [beat.duration for beat in plan.beats] == [4.0, 6.0]
		assert plan.beats[0].has_movie_audio is True
		summary = [(item.kind, item.beat_index) for item in plan.inputs]
		assert summary == [('audio', 0), ('audio', 1), ('silence', 1)]

#============================================

def test_overflow_aborts_run():
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = os.path.join(temp_dir, "script.yaml")
		_write_yaml(yaml_path, [
			"  - audio: voice-3.mp3",
			"    image: {type: movie, source: {kind: path, path: clip.mp4}}",
			"    movie_params: {speed: 4}",
			"  - image: {type: voice_over}",
		])
		with pytest.raises(DurationOverflow):
			BeatMixProject(yaml_path, dry_run=True).run()

#============================================

def test_output_required_for_full_run():
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = os.path.join(temp_dir, "script.yaml")
		with open(yaml_path, "w") as yaml_file:
			yaml_file.write("beatmix: 1\nbeats:\n  - duration: 1\n")
		with pytest.raises(RuntimeError):
			BeatMixProject(yaml_path)

#============================================

def test_dump_timing_yaml():
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = os.path.join(temp_dir, "script.yaml")
		_write_yaml(yaml_path, ["  - duration: 2", "  - {}"])
		result = BeatMixProject(yaml_path, dry_run=True).run()
		data = yaml.safe_load(dump_timing_yaml(result.beats, audio_file="out.mp3"))
		assert data['audio_file'] == "out.mp3"
		assert data['beats'][1] == {
			'index': 1,
			'duration': 1.0,
			'start_at': 2.0,
			'silence_duration': 1.0,
			'audio_duration': 0.0,
			'movie_duration': 0.0,
			'has_movie_audio': False,
		}

#============================================

def test_cli_dump_plan(monkeypatch, capsys):
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = os.path.join(temp_dir, "script.yaml")
		_write_yaml(yaml_path, [
			"  - audio: voice-0.mp3",
			"  - audio: voice-1.mp3",
			"  - audio: voice-2.mp3",
		])
		monkeypatch.setattr(sys, "argv", ["beatmix_cli.py", "-y", yaml_path, "-p", "-q"])
		beatmix_cli.main()
		output = capsys.readouterr().out
		data = yaml.safe_load(output)
		assert [beat['duration'] for beat in data['beats']] == [5.5, 4.0, 2.0]

#============================================

@pytest.fixture
def stub_tools(monkeypatch):
	calls = []
	def _make_silence(wavfile: str, **kwargs) -> str:
		with open(wavfile, "wb") as silence_file:
			silence_file.write(b"RIFF")
		return wavfile
	def _invoke(inputs: list, output_file: str, silence_file: str = None,
		timeout: float = None, cancel_event=None) -> str:
		calls.append((silence_file, os.path.isfile(silence_file)))
		return output_file
	monkeypatch.setattr(utils, "check_dependency", lambda cmd_name: None)
	monkeypatch.setattr(sox, "makeSilence", _make_silence)
	monkeypatch.setattr(ffmpeg_concat, "invoke", _invoke)
	return calls

#============================================

def _write_three_beats(temp_dir: str) -> str:
	yaml_path = os.path.join(temp_dir, "script.yaml")
	_write_yaml(yaml_path, [
		"  - audio: voice-0.mp3",
		"  - audio: voice-1.mp3",
		"  - audio: voice-2.mp3",
	])
	return yaml_path

#============================================

def test_silence_source_removed_from_cache_dir(stub_tools):
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = _write_three_beats(temp_dir)
		cache_dir = os.path.join(temp_dir, "cache")
		BeatMixProject(yaml_path, keep_temp=False, cache_dir=cache_dir).run()
		assert len(stub_tools) == 1
		(silence_path, existed) = stub_tools[0]
		assert existed is True
		assert os.path.dirname(silence_path) == cache_dir
		assert os.listdir(cache_dir) == []

#============================================

def test_silence_source_kept_with_keep_temp(stub_tools):
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = _write_three_beats(temp_dir)
		cache_dir = os.path.join(temp_dir, "cache")
		BeatMixProject(yaml_path, keep_temp=True, cache_dir=cache_dir).run()
		remaining = os.listdir(cache_dir)
		assert len(remaining) == 1
		assert remaining[0].endswith("-silence.wav")

#============================================

def test_silence_source_removed_when_concat_fails(monkeypatch, stub_tools):
	def _failing_invoke(inputs: list, output_file: str, silence_file: str = None,
		timeout: float = None, cancel_event=None) -> str:
		raise ConcatenationFailure("ffmpeg exited with code 1", returncode=1)
	monkeypatch.setattr(ffmpeg_concat, "invoke", _failing_invoke)
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = _write_three_beats(temp_dir)
		cache_dir = os.path.join(temp_dir, "cache")
		with pytest.raises(ConcatenationFailure):
			BeatMixProject(yaml_path, cache_dir=cache_dir).run()
		assert os.listdir(cache_dir) == []

#============================================

def test_runs_sharing_cache_dir_get_distinct_silence_files(stub_tools):
	with tempfile.TemporaryDirectory() as temp_dir:
		yaml_path = _write_three_beats(temp_dir)
		cache_dir = os.path.join(temp_dir, "cache")
		project = BeatMixProject(yaml_path, keep_temp=True, cache_dir=cache_dir)
		project.run()
		project.run()
		silence_paths = [silence_path for (silence_path, existed) in stub_tools]
		assert len(set(silence_paths)) == 2
		assert len(os.listdir(cache_dir)) == 2
