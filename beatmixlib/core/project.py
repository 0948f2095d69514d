#!/usr/bin/env python3

import os
import shutil
import tempfile
import threading
import yaml
from dataclasses import dataclass
from beatmixlib.core import assembler
from beatmixlib.core import classifier
from beatmixlib.core import grouping
from beatmixlib.core import prober
from beatmixlib.core import reconciler
from beatmixlib.core import utils
from beatmixlib.core.loader import ScriptLoader
from beatmixlib.core.models import ScriptData
from beatmixlib.media import ffmpeg_concat
from beatmixlib.media import sox

#============================================

@dataclass(frozen=True)
class MixPlan:
	beats: list
	inputs: list

#============================================

@dataclass(frozen=True)
class MixResult:
	beats: list
	audio_file: str

#============================================

def plan_script(script: ScriptData, max_workers: int = None,
	probe_func=None) -> MixPlan:
	"""
	Probe, classify, group, reconcile and assemble one script.

	Args:
		script: Loaded script.
		max_workers: Probe pool size.
		probe_func: Optional replacement for the ffprobe query.

	Returns:
		MixPlan: Reconciled beats and ordered concatenation inputs.
	"""
	beats = list(script.beats)
	probes = prober.probe_all(beats, max_workers=max_workers, probe_func=probe_func)
	classifications = classifier.classify_all(beats)
	groups = grouping.resolve_groups(beats, classifications, probes)
	reconciled = reconciler.reconcile(beats, classifications, probes, groups,
		script.audio_params)
	inputs = assembler.assemble(beats, reconciled)
	return MixPlan(beats=reconciled, inputs=inputs)

#============================================

def run_pipeline(script: ScriptData, output_file: str, cache_dir: str,
	max_workers: int = None, timeout: float = None,
	cancel_event: threading.Event = None, probe_func=None,
	keep_temp: bool = False) -> MixResult:
	"""
	Reconcile a script and write its combined audio track.

	The silence source is written into cache_dir and removed afterwards
	unless keep_temp is set.
	"""
	plan = plan_script(script, max_workers=max_workers, probe_func=probe_func)
	silence_file = None
	try:
		if len(assembler.silence_inputs(plan.inputs)) > 0:
			silence_file = _make_temp_path(cache_dir, "silence.wav")
			sox.makeSilence(silence_file, samplerate=assembler.SAMPLE_RATE,
				audio_mode='stereo')
		ffmpeg_concat.invoke(plan.inputs, output_file, silence_file=silence_file,
			timeout=timeout, cancel_event=cancel_event)
	finally:
		if not keep_temp and silence_file is not None and os.path.exists(silence_file):
			os.remove(silence_file)
	return MixResult(beats=plan.beats, audio_file=output_file)

#============================================

def _make_temp_path(cache_dir: str, suffix: str) -> str:
	(handle, path) = tempfile.mkstemp(prefix=f"{utils.make_timestamp()}-",
		suffix=f"-{suffix}", dir=cache_dir)
	os.close(handle)
	return path

#============================================

def timing_table(reconciled: list) -> list:
	table = []
	for index, entry in enumerate(reconciled):
		table.append({
			'index': index,
			'duration': entry.duration,
			'start_at': entry.start_at,
			'silence_duration': entry.silence_duration,
			'audio_duration': entry.audio_duration,
			'movie_duration': entry.movie_duration,
			'has_movie_audio': entry.has_movie_audio,
		})
	return table

#============================================

def dump_timing_yaml(reconciled: list, audio_file: str = None) -> str:
	data = {'beats': timing_table(reconciled)}
	if audio_file is not None:
		data['audio_file'] = audio_file
	return yaml.safe_dump(data, sort_keys=False)

#============================================

class BeatMixProject():
	def __init__(self, yaml_file: str, output_override: str = None,
		dry_run: bool = False, keep_temp: bool = False, cache_dir: str = None,
		max_workers: int = None, timeout: float = None):
		loader = ScriptLoader(yaml_file, output_override=output_override)
		self.script = loader.load()
		self.yaml_file = yaml_file
		self.dry_run = dry_run
		self.keep_temp = keep_temp
		self.cache_dir = cache_dir
		self.max_workers = max_workers
		self.timeout = timeout
		self.output_file = self.script.output_file
		if not self.dry_run and self.output_file is None:
			raise RuntimeError("output.file is required unless running a dry run")

	#============================
	def plan(self) -> MixPlan:
		return plan_script(self.script, max_workers=self.max_workers)

	#============================
	def run(self, cancel_event: threading.Event = None) -> MixResult:
		if self.dry_run:
			plan = self.plan()
			utils.log("dry run: reconciliation complete")
			return MixResult(beats=plan.beats, audio_file=None)
		for tool in ("ffprobe", "ffmpeg", "sox"):
			utils.check_dependency(tool)
		cache_dir = self.cache_dir
		cache_dir_created = False
		if cache_dir is None:
			cache_dir = tempfile.mkdtemp(prefix="beatmix-run-")
			cache_dir_created = True
		elif not os.path.exists(cache_dir):
			os.makedirs(cache_dir)
		try:
			result = run_pipeline(self.script, self.output_file, cache_dir,
				max_workers=self.max_workers, timeout=self.timeout,
				cancel_event=cancel_event, keep_temp=self.keep_temp)
		finally:
			if not self.keep_temp and cache_dir_created:
				shutil.rmtree(cache_dir, ignore_errors=True)
		return result
