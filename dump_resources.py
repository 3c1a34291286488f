#!/usr/bin/env python3
"""
kube-dump - Kubernetes Resource Dumper

Lists every API resource type known to the cluster, fetches all objects of
each type with kubectl, writes one log file per resource type and finally
concatenates them into a single log.

Usage:
    # Current kubectl context, output to ./resources
    python dump_resources.py

    # Specific context, 4 concurrent fetches
    python dump_resources.py --context staging --max-workers 4

    # Custom output directory and config file
    python dump_resources.py -o ./dump -c kube-dump.yaml
"""
import argparse
import logging
import sys
from typing import List, Optional

from kubedump.config import generate_sample_config, load_config
from kubedump.k8s import KubectlError, list_api_resources
from kubedump.utils import (
    AggregationError,
    ProgressTracker,
    concatenate_logs,
    fan_out_fetch,
    setup_logging,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='kube-dump - Dump every Kubernetes API resource type to log files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default context, 2 concurrent fetches, output to ./resources
  python3 dump_resources.py

  # Named context with more concurrency
  python3 dump_resources.py --context prod --max-workers 8

  # Write a sample config file
  python3 dump_resources.py --generate-config > kube-dump.yaml
"""
    )

    # Defaults are applied by load_config so that file/env values are not
    # shadowed by argparse defaults.
    parser.add_argument('--config', '-c', help='Path to YAML config file')
    parser.add_argument('--generate-config', action='store_true',
                        help='Generate a sample config file and exit')
    parser.add_argument('--output', '-o', help='Output directory for logs (default: resources)')
    parser.add_argument(
        '--max-workers', '--max-channels',
        dest='max_workers',
        type=int,
        metavar='N',
        help='Maximum number of concurrent kubectl get commands (default: 2)'
    )
    parser.add_argument('--context', help='Use kubectl context (default: current context)')
    parser.add_argument('--kubectl', help='kubectl binary (default: kubectl)')
    parser.add_argument('--log-level', help='Logging level (default: INFO)')
    parser.add_argument('--log-file', help='Also write log messages to this file')
    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable the progress display'
    )
    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.generate_config:
        print(generate_sample_config())
        sys.exit(0)

    try:
        load_config(args)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        parser.error(str(e))

    if args.max_workers < 1:
        parser.error(f"--max-workers must be at least 1, got {args.max_workers}")

    setup_logging(args.log_level, log_file=args.log_file)

    if not args.context:
        print("Using default context")

    try:
        resources = list_api_resources(args.context, kubectl=args.kubectl)
    except KubectlError as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        with ProgressTracker(total=len(resources), show_progress=not args.no_progress) as tracker:
            fan_out_fetch(
                resources,
                args.output,
                max_workers=args.max_workers,
                context=args.context,
                kubectl=args.kubectl,
                tracker=tracker,
            )
    except (ValueError, RuntimeError) as e:
        logger.error(f"Error processing resources: {e}")
        sys.exit(1)

    try:
        concatenate_logs(args.output, exclude=[args.log_file] if args.log_file else [])
    except AggregationError as e:
        logger.error(f"Error concatenating logs: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
