#!/usr/bin/env python3

import os
from concurrent.futures import FIRST_EXCEPTION
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import wait
from tqdm import tqdm
from beatmixlib.core import utils
from beatmixlib.core.errors import ProbeFailure
from beatmixlib.core.models import Beat
from beatmixlib.core.models import MediaProbe
from beatmixlib.media import ffprobe

#============================================

MAX_PROBE_WORKERS = 32

#============================================

def default_worker_count(beat_count: int) -> int:
	# probing spawns processes and waits on them, so oversubscribe the cores
	workers = min(MAX_PROBE_WORKERS, (os.cpu_count() or 1) * 4)
	return max(1, min(workers, beat_count))

#============================================

def probe_beat(beat: Beat, probe_func=None) -> MediaProbe:
	"""
	Probe the movie and own audio of one beat.

	Args:
		beat: Script beat.
		probe_func: Callable returning (duration, has_audio) for a media
			reference, defaults to ffprobe.

	Returns:
		MediaProbe: Durations for the beat.
	"""
	if probe_func is None:
		probe_func = ffprobe.probe_media
	movie_duration = 0.0
	has_movie_audio = False
	if beat.image is not None and beat.image.is_movie:
		media = beat.image.source
		try:
			(duration, has_movie_audio) = probe_func(media)
		except ProbeFailure as exc:
			raise ProbeFailure(str(exc), beat_index=beat.index, media=media) from exc
		movie_duration = duration / beat.movie_speed
	audio_duration = 0.0
	if beat.audio_file is not None:
		media = beat.audio_file
		try:
			(audio_duration, _) = probe_func(media)
		except ProbeFailure as exc:
			raise ProbeFailure(str(exc), beat_index=beat.index, media=media) from exc
	return MediaProbe(
		movie_duration=movie_duration,
		audio_duration=audio_duration,
		has_movie_audio=has_movie_audio,
	)

#============================================

def probe_all(beats: list, max_workers: int = None, probe_func=None) -> list:
	"""
	Probe every beat on a bounded worker pool and wait for all of them.

	The first failure cancels the pending probes and is raised.

	Args:
		beats: Ordered script beats.
		max_workers: Pool size, defaults to default_worker_count().
		probe_func: Optional replacement for ffprobe.probe_media.

	Returns:
		list: MediaProbe per beat, in beat order.
	"""
	if len(beats) == 0:
		return []
	if max_workers is None:
		max_workers = default_worker_count(len(beats))
	if max_workers < 1:
		raise RuntimeError("probe worker count must be positive")
	results = [None] * len(beats)
	progress = None
	if not utils.is_quiet_mode():
		progress = tqdm(total=len(beats), desc="probe", unit="beat")
	with ThreadPoolExecutor(max_workers=max_workers) as pool:
		futures = {}
		for position, beat in enumerate(beats):
			future = pool.submit(probe_beat, beat, probe_func)
			futures[future] = position
		pending = set(futures.keys())
		try:
			while len(pending) > 0:
				(done, pending) = wait(pending, return_when=FIRST_EXCEPTION)
				for future in done:
					# result() re-raises the probe failure
					results[futures[future]] = future.result()
					if progress is not None:
						progress.update(1)
		except BaseException:
			for future in pending:
				future.cancel()
			raise
		finally:
			if progress is not None:
				progress.close()
	return results
