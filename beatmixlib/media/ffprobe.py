#!/usr/bin/env python3

import json
import shlex
import subprocess
from beatmixlib.core import utils
from beatmixlib.core.errors import ProbeFailure

#============================================

def build_probe_command(media: str) -> list:
	cmd = [
		utils.tool_path("ffprobe"), "-v", "error",
		"-show_entries", "format=duration:stream=codec_type",
		"-of", "json",
		media,
	]
	return cmd

#============================================

def parse_probe_output(payload: str, media: str) -> tuple:
	"""
	Read duration and audio presence from ffprobe json output.

	Args:
		payload: ffprobe stdout text.
		media: Media path or URL, used in error messages.

	Returns:
		tuple: (duration seconds, has audio stream)
	"""
	try:
		data = json.loads(payload)
	except ValueError:
		raise ProbeFailure(f"ffprobe returned invalid json for {media}", media=media)
	if not isinstance(data, dict):
		raise ProbeFailure(f"ffprobe returned invalid json for {media}", media=media)
	duration_text = data.get('format', {}).get('duration')
	if duration_text is None:
		raise ProbeFailure(f"ffprobe did not return duration for {media}", media=media)
	try:
		duration = float(duration_text)
	except (TypeError, ValueError):
		raise ProbeFailure(f"ffprobe returned bad duration {duration_text!r} for {media}",
			media=media)
	if duration < 0:
		raise ProbeFailure(f"ffprobe returned negative duration for {media}", media=media)
	has_audio = False
	for stream in data.get('streams', []):
		if isinstance(stream, dict) and stream.get('codec_type') == 'audio':
			has_audio = True
	return (duration, has_audio)

#============================================

def probe_media(media: str) -> tuple:
	"""
	Ask ffprobe for the duration and audio presence of a file or URL.
	"""
	cmd = build_probe_command(media)
	showcmd = shlex.join(cmd)
	utils.log(f"CMD: '{showcmd}'")
	try:
		proc = subprocess.run(cmd, capture_output=True, text=True)
	except OSError as exc:
		raise ProbeFailure(f"could not run ffprobe: {exc}", media=media)
	if proc.returncode != 0:
		stderr_text = proc.stderr.strip()
		raise ProbeFailure(f"ffprobe failed for {media}: {stderr_text}", media=media)
	return parse_probe_output(proc.stdout, media)
