#!/usr/bin/env python3

import enum
from dataclasses import dataclass
from beatmixlib.core import utils
from beatmixlib.core.classifier import BeatKind

#============================================

class GroupKind(enum.Enum):
	VOICE_OVER = 'voice_over'
	SPILL_OVER = 'spill_over'
	SINGLE = 'single'

#============================================

@dataclass(frozen=True)
class Group:
	kind: GroupKind
	indices: tuple

	#============================
	@property
	def start(self) -> int:
		return self.indices[0]

#============================================

def find_voice_over_group(classifications: list, probes: list, index: int) -> list:
	"""
	Beats riding the movie of beat `index`: the anchor plus every
	immediately following voice-over beat.
	"""
	group = [index]
	if probes[index].movie_duration <= 0:
		return group
	position = index + 1
	while position < len(classifications):
		if classifications[position].kind != BeatKind.VOICE_OVER:
			break
		group.append(position)
		position += 1
	return group

#============================================

def find_spill_over_group(probes: list, index: int) -> list:
	"""
	Beats covered by the audio of beat `index`: the anchor plus every
	immediately following beat without media of its own.
	"""
	group = [index]
	if probes[index].audio_duration <= 0:
		return group
	position = index + 1
	while position < len(probes):
		if probes[position].has_media:
			break
		group.append(position)
		position += 1
	return group

#============================================

def resolve_groups(beats: list, classifications: list, probes: list) -> list:
	"""
	Partition the beat list into contiguous groups.

	Voice-over grouping is tried before spill-over grouping at each
	anchor, so a movie timeline wins over spilled audio.

	Args:
		beats: Ordered script beats.
		classifications: Classification per beat.
		probes: MediaProbe per beat.

	Returns:
		list: Groups covering every beat exactly once, in order.
	"""
	if not (len(beats) == len(classifications) == len(probes)):
		raise RuntimeError("beats, classifications and probes must have equal length")
	groups = []
	index = 0
	while index < len(beats):
		group = find_voice_over_group(classifications, probes, index)
		if len(group) > 1:
			utils.log(f"voice over group: {len(group)} beats at index {index}")
			groups.append(Group(GroupKind.VOICE_OVER, tuple(group)))
			index += len(group)
			continue
		group = find_spill_over_group(probes, index)
		if len(group) > 1:
			utils.log(f"spill over group: {len(group)} beats at index {index}")
			groups.append(Group(GroupKind.SPILL_OVER, tuple(group)))
			index += len(group)
			continue
		groups.append(Group(GroupKind.SINGLE, (index,)))
		index += 1
	return groups
