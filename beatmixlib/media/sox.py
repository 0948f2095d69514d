#!/usr/bin/env python3

import os
from beatmixlib.core import utils

#============================================

SILENCE_SOURCE_SECONDS = 60.0

#============================================

def build_silence_command(wavfile: str, seconds: float = SILENCE_SOURCE_SECONDS,
	samplerate: int = None, bitrate: int = None, audio_mode: str = None) -> list:
	cmd = [utils.tool_path("sox"), "--null"]
	if samplerate is not None:
		cmd += ["-r", str(samplerate)]
	if bitrate is not None:
		cmd += ["-b", str(bitrate)]
	if audio_mode == "mono":
		cmd += ["-c", "1"]
	elif audio_mode == "stereo":
		cmd += ["-c", "2"]
	elif audio_mode is not None:
		raise RuntimeError("audio mode must be mono or stereo")
	cmd += [wavfile, "trim", "0.0", f"{seconds:.4f}"]
	return cmd

#============================================

def makeSilence(wavfile: str = "silence.wav", seconds: float = SILENCE_SOURCE_SECONDS,
	samplerate: int = None, bitrate: int = None, audio_mode: str = None) -> str:
	cmd = build_silence_command(wavfile, seconds=seconds, samplerate=samplerate,
		bitrate=bitrate, audio_mode=audio_mode)
	utils.run_process(cmd)
	if not os.path.isfile(wavfile):
		raise RuntimeError(f"silence creation failed: {wavfile}")
	return wavfile
