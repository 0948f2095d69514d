#!/usr/bin/env python3

from dataclasses import dataclass
from dataclasses import field

#============================================

AUDIO_INPUT = 'audio'
SILENCE_INPUT = 'silence'
SAMPLE_RATE = 44100
AUDIO_FORMAT = f"aformat=sample_fmts=fltp:sample_rates={SAMPLE_RATE}:channel_layouts=stereo"

#============================================

@dataclass(frozen=True)
class ConcatInput:
	kind: str
	beat_index: int
	file: str = None
	duration: float = None
	split_label: str = None

#============================================

@dataclass
class FilterGraph:
	input_files: list = field(default_factory=list)
	looped_inputs: set = field(default_factory=set)
	filters: list = field(default_factory=list)
	output_label: str = '[aout]'

#============================================

def assemble(beats: list, reconciled: list) -> list:
	"""
	Order the concatenation inputs of the combined track.

	Each beat contributes its own audio file (if any) followed by one
	silence slice when it needs silence. Every slice gets its own split
	label so no part of the silence source is consumed twice.

	Args:
		beats: Ordered script beats.
		reconciled: ReconciledBeat per beat.

	Returns:
		list: ConcatInput entries in playback order.
	"""
	if len(beats) != len(reconciled):
		raise RuntimeError("beats and reconciled beats must have equal length")
	inputs = []
	silence_count = 0
	for index, (beat, entry) in enumerate(zip(beats, reconciled)):
		if beat.audio_file is not None:
			inputs.append(ConcatInput(AUDIO_INPUT, index, file=beat.audio_file))
		if entry.silence_duration > 0:
			inputs.append(ConcatInput(SILENCE_INPUT, index,
				duration=entry.silence_duration,
				split_label=f"[ls_{silence_count}]"))
			silence_count += 1
	return inputs

#============================================

def silence_inputs(inputs: list) -> list:
	return [item for item in inputs if item.kind == SILENCE_INPUT]

#============================================

def build_filter_graph(inputs: list, silence_file: str = None) -> FilterGraph:
	"""
	Translate concatenation inputs into an ffmpeg filter graph.

	Args:
		inputs: ConcatInput entries from assemble().
		silence_file: Long silent audio file, looped and split for the
			silence slices. Required when any slice exists.

	Returns:
		FilterGraph: Input files, filter lines and the output label.
	"""
	graph = FilterGraph()
	slices = silence_inputs(inputs)
	if len(slices) > 0:
		if silence_file is None:
			raise RuntimeError("a silence source is required for silence slices")
		silence_id = _add_formatted_input(graph, silence_file, looped=True)
		labels = "".join(item.split_label for item in slices)
		graph.filters.append(f"{silence_id}asplit={len(slices)}{labels}")
	stream_ids = []
	for item in inputs:
		if item.kind == AUDIO_INPUT:
			stream_ids.append(_add_formatted_input(graph, item.file))
			continue
		padding_id = f"[padding_{item.beat_index}]"
		graph.filters.append(
			f"{item.split_label}atrim=start=0:end={item.duration}{padding_id}")
		stream_ids.append(padding_id)
	graph.filters.append(
		f"{''.join(stream_ids)}concat=n={len(stream_ids)}:v=0:a=1{graph.output_label}")
	return graph

#============================================

def _add_formatted_input(graph: FilterGraph, media: str, looped: bool = False) -> str:
	input_index = len(graph.input_files)
	graph.input_files.append(media)
	if looped:
		graph.looped_inputs.add(input_index)
	stream_id = f"[a{input_index}]"
	graph.filters.append(f"[{input_index}:a]{AUDIO_FORMAT}{stream_id}")
	return stream_id
