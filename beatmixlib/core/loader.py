#!/usr/bin/env python3

import os
import yaml
from beatmixlib.core import utils
from beatmixlib.core.models import AudioParams
from beatmixlib.core.models import Beat
from beatmixlib.core.models import ImageDescriptor
from beatmixlib.core.models import MOVIE
from beatmixlib.core.models import ScriptData
from beatmixlib.core.models import VOICE_OVER

#============================================

SCRIPT_VERSION = 1
DEFAULT_PADDING = 0.3
DEFAULT_CLOSING_PADDING = 0.8

#============================================

class ScriptLoader():
	def __init__(self, yaml_file: str, output_override: str = None):
		self.yaml_file = yaml_file
		self.output_override = output_override

	#============================
	def load(self) -> ScriptData:
		data = self._load_yaml()
		if data.get('beatmix') != SCRIPT_VERSION:
			raise RuntimeError(f"beatmix must be set to {SCRIPT_VERSION}")
		base_dir = os.path.dirname(os.path.abspath(self.yaml_file))
		script = parse_script(data, base_dir=base_dir,
			output_override=self.output_override)
		return ScriptData(
			beats=script.beats,
			audio_params=script.audio_params,
			output_file=script.output_file,
			script_file=self.yaml_file,
		)

	#============================
	def _load_yaml(self) -> dict:
		file_size = os.path.getsize(self.yaml_file)
		if file_size > 10 ** 7:
			raise RuntimeError("yaml file is larger than 10MB")
		with open(self.yaml_file, 'r') as data_file:
			data = yaml.safe_load(data_file)
		if not isinstance(data, dict):
			raise RuntimeError("script yaml must be a mapping at the top level")
		return data

#============================================

def parse_script(data: dict, base_dir: str = None,
	output_override: str = None) -> ScriptData:
	"""
	Build ScriptData from an already parsed mapping.

	Args:
		data: Mapping with beats, presentation_style and output keys.
		base_dir: Directory used to resolve relative media paths.
		output_override: Output file that replaces output.file.

	Returns:
		ScriptData: Immutable script for one reconciliation run.
	"""
	raw_beats = data.get('beats')
	if not isinstance(raw_beats, list) or len(raw_beats) == 0:
		raise RuntimeError("beats must be a non-empty list")
	beats = []
	for index, raw_beat in enumerate(raw_beats):
		beats.append(_parse_beat(raw_beat, index, base_dir))
	audio_params = _parse_audio_params(data.get('presentation_style'))
	output_file = output_override
	if output_file is None:
		output = data.get('output') or {}
		if not isinstance(output, dict):
			raise RuntimeError("output must be a mapping")
		output_file = output.get('file')
	return ScriptData(beats=tuple(beats), audio_params=audio_params,
		output_file=output_file)

#============================================

def _parse_audio_params(style) -> AudioParams:
	if style is None:
		return AudioParams(DEFAULT_PADDING, DEFAULT_CLOSING_PADDING)
	if not isinstance(style, dict):
		raise RuntimeError("presentation_style must be a mapping")
	params = style.get('audio_params') or {}
	if not isinstance(params, dict):
		raise RuntimeError("presentation_style.audio_params must be a mapping")
	padding = _parse_non_negative(params.get('padding', DEFAULT_PADDING),
		"presentation_style.audio_params.padding")
	closing = _parse_non_negative(params.get('closing_padding', DEFAULT_CLOSING_PADDING),
		"presentation_style.audio_params.closing_padding")
	return AudioParams(padding=padding, closing_padding=closing)

#============================================

def _parse_beat(raw_beat, index: int, base_dir: str) -> Beat:
	if raw_beat is None:
		raw_beat = {}
	if not isinstance(raw_beat, dict):
		raise RuntimeError(f"beats[{index}] must be a mapping")
	key = f"beats[{index}]"
	audio_file = raw_beat.get('audio')
	if audio_file is not None:
		audio_file = _resolve_media(str(audio_file), base_dir)
	duration = None
	if raw_beat.get('duration') is not None:
		duration = _parse_non_negative(raw_beat['duration'], f"{key}.duration")
	padding = None
	audio_params = raw_beat.get('audio_params')
	if audio_params is not None:
		if not isinstance(audio_params, dict):
			raise RuntimeError(f"{key}.audio_params must be a mapping")
		if audio_params.get('padding') is not None:
			padding = _parse_non_negative(audio_params['padding'],
				f"{key}.audio_params.padding")
	movie_speed = 1.0
	movie_params = raw_beat.get('movie_params')
	if movie_params is not None:
		if not isinstance(movie_params, dict):
			raise RuntimeError(f"{key}.movie_params must be a mapping")
		movie_speed = utils.parse_speed(movie_params.get('speed'),
			f"{key}.movie_params.speed")
	image = _parse_image(raw_beat.get('image'), key, base_dir)
	return Beat(
		index=index,
		audio_file=audio_file,
		duration=duration,
		image=image,
		padding=padding,
		movie_speed=movie_speed,
	)

#============================================

def _parse_image(raw_image, key: str, base_dir: str) -> ImageDescriptor:
	if raw_image is None:
		return None
	if not isinstance(raw_image, dict):
		raise RuntimeError(f"{key}.image must be a mapping")
	kind = raw_image.get('type')
	if kind is None:
		raise RuntimeError(f"{key}.image.type is required")
	if kind == MOVIE:
		source = _parse_source(raw_image.get('source'), f"{key}.image.source", base_dir)
		return ImageDescriptor(kind=MOVIE, source=source)
	if kind == VOICE_OVER:
		start_at = None
		if raw_image.get('start_at') is not None:
			start_at = _parse_non_negative(raw_image['start_at'],
				f"{key}.image.start_at")
		return ImageDescriptor(kind=VOICE_OVER, start_at=start_at)
	return ImageDescriptor(kind=str(kind))

#============================================

def _parse_source(raw_source, key: str, base_dir: str) -> str:
	if not isinstance(raw_source, dict):
		raise RuntimeError(f"{key} must be a mapping")
	kind = raw_source.get('kind')
	if kind == 'url':
		url = raw_source.get('url')
		if not url:
			raise RuntimeError(f"{key}.url is required for url sources")
		return str(url)
	if kind == 'path':
		path = raw_source.get('path')
		if not path:
			raise RuntimeError(f"{key}.path is required for path sources")
		return _resolve_media(str(path), base_dir)
	if kind in ('base64', 'text'):
		# inline movie data has no file for the media tool to probe
		return None
	raise RuntimeError(f"{key}.kind must be path, url, base64 or text")

#============================================

def _resolve_media(value: str, base_dir: str) -> str:
	if utils.is_url(value) or os.path.isabs(value) or base_dir is None:
		return value
	return os.path.join(base_dir, value)

#============================================

def _parse_non_negative(raw_value, key_path: str) -> float:
	value = utils.parse_seconds(raw_value, key_path)
	if value < 0:
		raise RuntimeError(f"{key_path} must not be negative")
	return value
