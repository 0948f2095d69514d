#!/usr/bin/env python3

import os
import shlex
import shutil
import subprocess
import time
from decimal import Decimal
from decimal import ROUND_HALF_UP

#============================================

_QUIET_MODE = False

#============================================

def set_quiet_mode(value: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(value)

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def log(message: str) -> None:
	if not _QUIET_MODE:
		print(message)

#============================================

def run_process(cmd: list) -> subprocess.CompletedProcess:
	"""
	Run a command list and raise on a non-zero exit.

	Args:
		cmd: Command list to execute.

	Returns:
		subprocess.CompletedProcess: The completed process.
	"""
	showcmd = shlex.join(cmd)
	log(f"CMD: '{showcmd}'")
	proc = subprocess.run(cmd, capture_output=True, text=True)
	if proc.returncode != 0:
		stderr_text = proc.stderr.strip()
		raise RuntimeError(f"command failed: {showcmd}\n{stderr_text}")
	return proc

#============================================

def tool_path(name: str) -> str:
	"""
	Resolve an external tool, honoring <NAME>_PATH overrides.
	"""
	env_value = os.environ.get(f"{name.upper()}_PATH")
	if env_value:
		return env_value
	return name

#============================================

def check_dependency(cmd_name: str) -> None:
	if shutil.which(tool_path(cmd_name)) is None:
		raise RuntimeError(f"missing required tool: {cmd_name}")
	return

#============================================

def parse_seconds(raw_time, key_path: str) -> float:
	"""
	Parse seconds given as a number or a [HH:]MM:SS[.ms] string.
	"""
	if isinstance(raw_time, bool):
		raise RuntimeError(f"{key_path} must be a number of seconds")
	if isinstance(raw_time, (int, float)):
		return float(raw_time)
	if isinstance(raw_time, str):
		value = raw_time.strip()
		try:
			if ':' not in value:
				return float(Decimal(value))
			parts = value.split(':')
			seconds = Decimal(parts.pop())
			minutes = Decimal(parts.pop())
			hours = Decimal(0)
			if len(parts) > 0:
				hours = Decimal(parts.pop())
		except ArithmeticError:
			raise RuntimeError(f"{key_path} is not a valid time value: {raw_time}")
		return float(hours * Decimal(3600) + minutes * Decimal(60) + seconds)
	raise RuntimeError(f"{key_path} must be a number of seconds")

#============================================

def parse_speed(speed_value, key_path: str, default_speed: float = 1.0) -> float:
	if speed_value is None:
		return default_speed
	if isinstance(speed_value, bool):
		raise RuntimeError(f"{key_path} must be a number")
	try:
		speed = Decimal(str(speed_value).strip())
	except ArithmeticError:
		raise RuntimeError(f"{key_path} is not a valid speed: {speed_value}")
	if not speed.is_finite() or speed <= 0:
		raise RuntimeError(f"{key_path} must be positive")
	return float(speed)

#============================================

def round_hundredths(value: float) -> float:
	"""
	Round to 2 decimal places, halves away from zero.
	"""
	quantized = Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
	return float(quantized)

#============================================

def is_url(value: str) -> bool:
	lowered = value.lower()
	return lowered.startswith('http://') or lowered.startswith('https://')

#============================================

def make_timestamp() -> str:
	datestamp = time.strftime("%y%b%d").lower()
	uppercase = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
	hourstamp = uppercase[(time.localtime()[3]) % 26]
	minstamp = f"{time.localtime()[4]:02d}"
	secstamp = uppercase[(time.localtime()[5]) % 26]
	timestamp = datestamp + hourstamp + minstamp + secstamp
	return timestamp
