#!/usr/bin/env python3

"""
Failure taxonomy for a reconciliation run.

Every error aborts the whole run; none of them is retried.
"""

#============================================

class BeatMixError(RuntimeError):
	pass

#============================================

class ProbeFailure(BeatMixError):
	def __init__(self, message: str, beat_index: int = None, media: str = None):
		self.beat_index = beat_index
		self.media = media
		if beat_index is not None:
			message = f"beat {beat_index}: {message}"
		super().__init__(message)

#============================================

class ReconcileError(BeatMixError):
	def __init__(self, message: str, beat_index: int):
		self.beat_index = beat_index
		super().__init__(message)

#============================================

class DurationOverflow(ReconcileError):
	pass

#============================================

class InvalidStartAt(ReconcileError):
	pass

#============================================

class DurationOverwrap(ReconcileError):
	pass

#============================================

class ConcatenationFailure(BeatMixError):
	def __init__(self, message: str, returncode: int = None, stderr: str = ''):
		self.returncode = returncode
		self.stderr = stderr
		super().__init__(message)

#============================================

class ConcatenationCancelled(ConcatenationFailure):
	pass
