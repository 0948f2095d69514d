#!/usr/bin/env python3

import argparse
from beatmixlib.core import utils
from beatmixlib.core.project import BeatMixProject
from beatmixlib.core.project import dump_timing_yaml

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(description="Beat audio track builder")
	parser.add_argument('-y', '--yaml', dest='yamlfile', required=True,
		help='script yaml file listing the beats and their media')
	parser.add_argument('-o', '--output', dest='output_file',
		help='override output audio file from yaml')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='reconcile timing only, do not concatenate audio')
	parser.add_argument('-c', '--cache-dir', dest='cache_dir',
		help='directory for temporary files')
	parser.add_argument('-k', '--keep-temp', dest='keep_temp',
		help='keep temporary files', action='store_true')
	parser.add_argument('-K', '--no-keep-temp', dest='keep_temp',
		help='remove temporary files', action='store_false')
	parser.add_argument('-p', '--dump-plan', dest='dump_plan', action='store_true',
		help='print the per-beat timing table after reconciling')
	parser.add_argument('-j', '--jobs', dest='max_workers', type=int,
		help='number of parallel duration probes')
	parser.add_argument('-t', '--timeout', dest='timeout', type=float,
		help='seconds before the concatenation is aborted')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='suppress command echo and progress output')
	parser.set_defaults(keep_temp=False)
	args = parser.parse_args()
	return args

#============================================

def main():
	args = parse_args()
	utils.set_quiet_mode(args.quiet)
	dry_run = args.dry_run or args.dump_plan
	project = BeatMixProject(args.yamlfile, output_override=args.output_file,
		dry_run=dry_run, keep_temp=args.keep_temp, cache_dir=args.cache_dir,
		max_workers=args.max_workers, timeout=args.timeout)
	result = project.run()
	if dry_run:
		print(dump_timing_yaml(result.beats))
		return
	print(result.audio_file)


if __name__ == '__main__':
	main()
