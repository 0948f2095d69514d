#!/usr/bin/env python3

import enum
from dataclasses import dataclass
from beatmixlib.core.models import Beat

#============================================

class BeatKind(enum.Enum):
	OWN_AUDIO = 'own_audio'
	OWN_MOVIE = 'own_movie'
	VOICE_OVER = 'voice_over'
	EMPTY = 'empty'

#============================================

@dataclass(frozen=True)
class Classification:
	kind: BeatKind
	start_offset: float = None

#============================================

def classify(beat: Beat) -> Classification:
	"""
	Decide what a beat carries from its declared image and audio.
	"""
	image = beat.image
	if image is not None and image.is_voice_over:
		return Classification(BeatKind.VOICE_OVER, start_offset=image.start_at)
	if image is not None and image.is_movie:
		return Classification(BeatKind.OWN_MOVIE)
	if beat.audio_file is not None:
		return Classification(BeatKind.OWN_AUDIO)
	return Classification(BeatKind.EMPTY)

#============================================

def classify_all(beats: list) -> list:
	return [classify(beat) for beat in beats]
