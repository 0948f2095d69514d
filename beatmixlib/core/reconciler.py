#!/usr/bin/env python3

"""
Beat duration reconciliation.

Turns probed media durations and beat groups into the final length of
every beat and the amount of generated silence each beat needs.
"""

import dataclasses
from beatmixlib.core import utils
from beatmixlib.core.classifier import BeatKind
from beatmixlib.core.classifier import Classification
from beatmixlib.core.errors import DurationOverflow
from beatmixlib.core.errors import DurationOverwrap
from beatmixlib.core.errors import InvalidStartAt
from beatmixlib.core.errors import ReconcileError
from beatmixlib.core.grouping import GroupKind
from beatmixlib.core.models import AudioParams
from beatmixlib.core.models import Beat
from beatmixlib.core.models import ReconciledBeat

#============================================

# spill over only counts as truncation past this many seconds
SPILL_TOLERANCE = 0.01
MIN_SPILL_BEAT_DURATION = 1.0
DEFAULT_EMPTY_DURATION = 1.0

#============================================

def reconcile(beats: list, classifications: list, probes: list, groups: list,
	audio_params: AudioParams = None) -> list:
	"""
	Resolve the duration and silence of every beat.

	Args:
		beats: Ordered script beats.
		classifications: Classification per beat.
		probes: MediaProbe per beat.
		groups: Groups from grouping.resolve_groups, covering every beat.
		audio_params: Presentation style padding defaults.

	Returns:
		list: ReconciledBeat per beat, in beat order, with start_at filled.
	"""
	if audio_params is None:
		audio_params = AudioParams()
	if not (len(beats) == len(classifications) == len(probes)):
		raise RuntimeError("beats, classifications and probes must have equal length")
	resolved = []
	for group in groups:
		if group.start != len(resolved):
			raise RuntimeError(f"group at index {group.start} is out of order")
		if group.kind == GroupKind.VOICE_OVER:
			resolved.extend(_resolve_voice_over(classifications, probes, group.indices))
		elif group.kind == GroupKind.SPILL_OVER:
			resolved.extend(_resolve_spill_over(beats, probes, group.indices))
		else:
			index = group.start
			resolved.append(_resolve_single(beats[index], classifications[index],
				index, probes[index], len(beats), audio_params))
	if len(resolved) != len(beats):
		raise RuntimeError("groups do not cover every beat")
	_check_invariants(resolved)
	return compute_start_times(resolved)

#============================================

def compute_start_times(resolved: list) -> list:
	"""
	Fill start_at as the running sum of durations.
	"""
	timed = []
	start_at = 0.0
	for entry in resolved:
		timed.append(dataclasses.replace(entry, start_at=start_at))
		start_at += entry.duration
	return timed

#============================================

def get_padding(beat: Beat, index: int, beat_count: int,
	audio_params: AudioParams) -> float:
	if beat.padding is not None:
		return beat.padding
	if index == beat_count - 1:
		return 0.0
	if index == beat_count - 2:
		return audio_params.closing_padding
	return audio_params.padding

#============================================

def get_total_padding(padding: float, movie_duration: float,
	audio_duration: float, duration: float = None) -> float:
	if movie_duration > 0:
		return padding + max(0.0, movie_duration - audio_duration)
	if duration is not None and duration > audio_duration:
		return padding + (duration - audio_duration)
	return padding

#============================================

def spill_over_targets(beats: list, group: tuple, audio_duration: float) -> list:
	"""
	Target duration of each beat in a spill over group.

	Beats without a declared duration split what is left of the audio
	evenly, never less than one second each.
	"""
	specified_sum = 0.0
	unspecified = 0
	for index in group:
		if beats[index].duration is None:
			unspecified += 1
		else:
			specified_sum += beats[index].duration
	min_total = MIN_SPILL_BEAT_DURATION * unspecified
	rest = max(audio_duration - specified_sum, min_total)
	share = rest / (unspecified or 1)
	targets = []
	for index in group:
		if beats[index].duration is None:
			targets.append(share)
		else:
			targets.append(beats[index].duration)
	return targets

#============================================

def _make_entry(probe, duration: float, silence: float) -> ReconciledBeat:
	return ReconciledBeat(
		duration=duration,
		audio_duration=probe.audio_duration,
		movie_duration=probe.movie_duration,
		silence_duration=silence,
		has_movie_audio=probe.has_movie_audio,
	)

#============================================

def _resolve_voice_over(classifications: list, probes: list, group: tuple) -> list:
	movie_duration = probes[group[0]].movie_duration
	remaining = movie_duration
	entries = []
	for position, index in enumerate(group):
		probe = probes[index]
		if probe.audio_duration > remaining:
			raise DurationOverflow(
				f"duration overflow: at index({index}) "
				f"audioDuration({probe.audio_duration}) > remaining({remaining})",
				beat_index=index)
		if position == len(group) - 1:
			entries.append(_make_entry(probe, remaining, remaining - probe.audio_duration))
			remaining = 0.0
			continue
		start_at = classifications[index + 1].start_offset
		if start_at:
			remaining_after = movie_duration - start_at
			duration = remaining - remaining_after
			if duration < 0:
				raise InvalidStartAt(
					f"invalid startAt: at index({index}), available duration({duration}) < 0",
					beat_index=index)
			silence = duration - probe.audio_duration
			if silence < 0:
				raise DurationOverwrap(
					f"duration overwrap: at index({index}), silenceDuration({silence}) < 0",
					beat_index=index)
			entries.append(_make_entry(probe, duration, silence))
			remaining = remaining_after
			continue
		entries.append(_make_entry(probe, probe.audio_duration, 0.0))
		remaining -= probe.audio_duration
	return entries

#============================================

def _resolve_spill_over(beats: list, probes: list, group: tuple) -> list:
	audio_duration = probes[group[0]].audio_duration
	targets = spill_over_targets(beats, group, audio_duration)
	silences = [0.0] * len(group)
	total = sum(targets)
	if total > audio_duration + SPILL_TOLERANCE:
		# earlier beats take their full target until the audio runs out
		remaining = audio_duration
		for position, target in enumerate(targets):
			if remaining >= target:
				remaining -= target
				continue
			silences[position] = target - remaining
			remaining = 0.0
	elif audio_duration > total:
		targets[-1] += audio_duration - total
	entries = []
	for position, index in enumerate(group):
		entries.append(_make_entry(probes[index], targets[position], silences[position]))
	return entries

#============================================

def _resolve_single(beat: Beat, classification: Classification, index: int,
	probe, beat_count: int, audio_params: AudioParams) -> ReconciledBeat:
	kind = classification.kind
	if kind != BeatKind.EMPTY and probe.audio_duration > 0:
		padding = get_padding(beat, index, beat_count, audio_params)
		total_padding = utils.round_hundredths(get_total_padding(padding,
			probe.movie_duration, probe.audio_duration, beat.duration))
		silence = total_padding if total_padding > 0 else 0.0
		return _make_entry(probe, probe.audio_duration + total_padding, silence)
	if kind == BeatKind.OWN_MOVIE and probe.movie_duration > 0:
		return _make_entry(probe, probe.movie_duration, probe.movie_duration)
	duration = beat.duration
	if duration is None:
		duration = DEFAULT_EMPTY_DURATION
	return _make_entry(probe, duration, duration)

#============================================

def _check_invariants(resolved: list) -> None:
	for index, entry in enumerate(resolved):
		if entry.duration < 0:
			raise ReconcileError(f"negative duration({entry.duration}) at index({index})",
				beat_index=index)
		if entry.silence_duration < 0:
			raise ReconcileError(
				f"negative silenceDuration({entry.silence_duration}) at index({index})",
				beat_index=index)
