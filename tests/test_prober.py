#!/usr/bin/env python3

"""
Unit tests for duration probing, using a fake media query.
"""

# Standard Library
import os
import sys
import threading
import time

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from beatmixlib.core import prober
from beatmixlib.core import utils
from beatmixlib.core.errors import ProbeFailure
from beatmixlib.core.models import Beat
from beatmixlib.core.models import ImageDescriptor
from beatmixlib.media import ffprobe

#============================================

@pytest.fixture(autouse=True)
def quiet_mode():
	utils.set_quiet_mode(True)
	yield
	utils.set_quiet_mode(False)

#============================================

def _fake_probe(durations: dict):
	"""
	Build a probe function answering from a mapping.
	"""
	def _probe(media: str) -> tuple:
		if media not in durations:
			raise ProbeFailure(f"no such media {media}", media=media)
		return durations[media]
	return _probe

#============================================

def test_probe_beat_divides_movie_by_speed():
	beat = Beat(index=0, audio_file="voice.mp3", movie_speed=2.0,
		image=ImageDescriptor(kind='movie', source='clip.mp4'))
	probe_func = _fake_probe({
		'clip.mp4': (10.0, True),
		'voice.mp3': (3.5, True),
	})
	result = prober.probe_beat(beat, probe_func)
	assert result.movie_duration == 5.0
	assert result.audio_duration == 3.5
	assert result.has_movie_audio is True
	assert result.has_media is True

#============================================

def test_probe_beat_without_media_is_zero():
	result = prober.probe_beat(Beat(index=0), _fake_probe({}))
	assert result.movie_duration == 0.0
	assert result.audio_duration == 0.0
	assert result.has_movie_audio is False
	assert result.has_media is False

#============================================

def test_probe_all_keeps_beat_order():
	lock = threading.Lock()
	calls = []

	def _slow_probe(media: str) -> tuple:
		index = int(media.split('-')[1].split('.')[0])
		# later beats finish first
		time.sleep(0.01 * (5 - index))
		with lock:
			calls.append(media)
		return (float(index + 1), True)

	beats = [Beat(index=i, audio_file=f"voice-{i}.mp3") for i in range(5)]
	results = prober.probe_all(beats, max_workers=5, probe_func=_slow_probe)
	assert [item.audio_duration for item in results] == [1.0, 2.0, 3.0, 4.0, 5.0]
	assert len(calls) == 5

#============================================

def test_probe_failure_names_beat():
	beats = [
		Beat(index=0, audio_file="voice-0.mp3"),
		Beat(index=1, audio_file="missing.mp3"),
	]
	probe_func = _fake_probe({'voice-0.mp3': (1.0, True)})
	with pytest.raises(ProbeFailure) as excinfo:
		prober.probe_all(beats, max_workers=2, probe_func=probe_func)
	assert excinfo.value.beat_index == 1
	assert excinfo.value.media == "missing.mp3"
	assert "missing.mp3" in str(excinfo.value)

#============================================

def test_probe_all_empty():
	assert prober.probe_all([]) == []

#============================================

def test_default_worker_count_bounds():
	assert prober.default_worker_count(1) == 1
	assert prober.default_worker_count(10000) <= prober.MAX_PROBE_WORKERS
	assert prober.default_worker_count(10000) >= 1

#============================================

def test_parse_probe_output():
	payload = (
		'{"streams": [{"codec_type": "video"}, {"codec_type": "audio"}],'
		' "format": {"duration": "12.480000"}}'
	)
	assert ffprobe.parse_probe_output(payload, "clip.mp4") == (12.48, True)

#============================================

def test_parse_probe_output_without_audio():
	payload = '{"streams": [{"codec_type": "video"}], "format": {"duration": "3.0"}}'
	assert ffprobe.parse_probe_output(payload, "clip.mp4") == (3.0, False)

#============================================

@pytest.mark.parametrize("payload", [
	"not json",
	'{"streams": []}',
	'{"format": {"duration": "N/A"}}',
])
def test_parse_probe_output_rejects_bad_payload(payload):
	with pytest.raises(ProbeFailure):
		ffprobe.parse_probe_output(payload, "clip.mp4")

#============================================

def test_build_probe_command(monkeypatch):
	monkeypatch.delenv("FFPROBE_PATH", raising=False)
	cmd = ffprobe.build_probe_command("https://example.com/clip.mp4")
	assert cmd[0] == "ffprobe"
	assert cmd[-1] == "https://example.com/clip.mp4"
	assert "format=duration:stream=codec_type" in cmd
