#!/usr/bin/env python3

import os
import shlex
import subprocess
import threading
import time
from collections import deque
from beatmixlib.core import utils
from beatmixlib.core.assembler import build_filter_graph
from beatmixlib.core.assembler import FilterGraph
from beatmixlib.core.errors import ConcatenationCancelled
from beatmixlib.core.errors import ConcatenationFailure

#============================================

POLL_SECONDS = 0.1
TERMINATE_GRACE_SECONDS = 3
STDERR_TAIL_LINES = 200

#============================================

def build_concat_command(graph: FilterGraph, output_file: str) -> list:
	"""
	Build the ffmpeg argument list that joins every input in order.

	Args:
		graph: Filter graph from assembler.build_filter_graph.
		output_file: Combined audio output path.

	Returns:
		list: ffmpeg command list.
	"""
	cmd = [utils.tool_path("ffmpeg"), "-y", "-hide_banner", "-nostats"]
	for index, media in enumerate(graph.input_files):
		if index in graph.looped_inputs:
			cmd += ["-stream_loop", "-1"]
		cmd += ["-i", media]
	cmd += ["-filter_complex", ";".join(graph.filters)]
	cmd += ["-map", graph.output_label]
	cmd += [output_file]
	return cmd

#============================================

def invoke(inputs: list, output_file: str, silence_file: str = None,
	timeout: float = None, cancel_event: threading.Event = None) -> str:
	"""
	Concatenate the inputs into one audio file with ffmpeg.

	Args:
		inputs: ConcatInput entries from assembler.assemble.
		output_file: Combined audio output path.
		silence_file: Looping silence source for silence slices.
		timeout: Seconds before the process is terminated.
		cancel_event: Event that terminates the process when set.

	Returns:
		str: The output file path.
	"""
	if len(inputs) == 0:
		raise ConcatenationFailure("no inputs to concatenate")
	graph = build_filter_graph(inputs, silence_file=silence_file)
	cmd = build_concat_command(graph, output_file)
	utils.log(f"filter_complex: {';'.join(graph.filters)}")
	run_concat(cmd, output_file, timeout=timeout, cancel_event=cancel_event)
	return output_file

#============================================

def run_concat(cmd: list, output_file: str, timeout: float = None,
	cancel_event: threading.Event = None) -> None:
	showcmd = shlex.join(cmd)
	utils.log(f"CMD: '{showcmd}'")
	try:
		process = subprocess.Popen(cmd, stdout=subprocess.DEVNULL,
			stderr=subprocess.PIPE, text=True)
	except OSError as exc:
		raise ConcatenationFailure(f"could not run ffmpeg: {exc}")
	stderr_tail = deque(maxlen=STDERR_TAIL_LINES)

	def _read_stderr() -> None:
		for line in process.stderr:
			stderr_tail.append(line)

	reader = threading.Thread(target=_read_stderr, daemon=True)
	reader.start()
	start_time = time.monotonic()
	reason = None
	while process.poll() is None:
		if cancel_event is not None and cancel_event.is_set():
			reason = "cancelled"
		elif timeout is not None and (time.monotonic() - start_time) > timeout:
			reason = f"timed out after {timeout}s"
		if reason is not None:
			_stop_process(process)
			break
		time.sleep(POLL_SECONDS)
	returncode = process.wait()
	reader.join(timeout=2)
	stderr_text = "".join(stderr_tail)
	if reason is not None:
		_remove_partial(output_file)
		raise ConcatenationCancelled(f"ffmpeg concatenation {reason}",
			returncode=returncode, stderr=stderr_text)
	if returncode != 0:
		_remove_partial(output_file)
		raise ConcatenationFailure(
			f"ffmpeg exited with {returncode}: {stderr_text.strip()}",
			returncode=returncode, stderr=stderr_text)
	if not os.path.isfile(output_file):
		raise ConcatenationFailure(f"ffmpeg did not write {output_file}",
			returncode=returncode, stderr=stderr_text)

#============================================

def _stop_process(process: subprocess.Popen) -> None:
	process.terminate()
	try:
		process.wait(timeout=TERMINATE_GRACE_SECONDS)
	except subprocess.TimeoutExpired:
		process.kill()

#============================================

def _remove_partial(output_file: str) -> None:
	if os.path.exists(output_file):
		os.remove(output_file)
