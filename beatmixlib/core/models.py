#!/usr/bin/env python3

from dataclasses import dataclass
from dataclasses import field

#============================================

MOVIE = 'movie'
VOICE_OVER = 'voice_over'

#============================================

@dataclass(frozen=True)
class ImageDescriptor:
	kind: str
	source: str = None
	start_at: float = None

	#============================
	@property
	def is_movie(self) -> bool:
		return self.kind == MOVIE and self.source is not None

	#============================
	@property
	def is_voice_over(self) -> bool:
		return self.kind == VOICE_OVER

#============================================

@dataclass(frozen=True)
class Beat:
	index: int
	audio_file: str = None
	duration: float = None
	image: ImageDescriptor = None
	padding: float = None
	movie_speed: float = 1.0

#============================================

@dataclass(frozen=True)
class AudioParams:
	padding: float = 0.3
	closing_padding: float = 0.8

#============================================

@dataclass(frozen=True)
class ScriptData:
	beats: tuple
	audio_params: AudioParams = field(default_factory=AudioParams)
	output_file: str = None
	script_file: str = None

#============================================

@dataclass(frozen=True)
class MediaProbe:
	movie_duration: float = 0.0
	audio_duration: float = 0.0
	has_movie_audio: bool = False

	#============================
	@property
	def has_media(self) -> bool:
		return self.movie_duration + self.audio_duration > 0

#============================================

@dataclass(frozen=True)
class ReconciledBeat:
	duration: float
	audio_duration: float
	movie_duration: float
	silence_duration: float
	has_movie_audio: bool
	start_at: float = 0.0
