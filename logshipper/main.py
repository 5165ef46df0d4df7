#!/usr/bin/env python3
"""
Ship lines from standard input to CloudWatch Logs.

Usage:
    some-app | python -m logshipper.main --group my-group --stream my-stream

    # With a config file and a smaller batch
    python -m logshipper.main --config shipper.yaml --batch-size 500 < app.log
"""

import argparse
import sys

from logshipper.client.cloudwatch import CloudWatchLogsClient
from logshipper.handler.engine import FlushError, LogShipper, ShipperConfig
from logshipper.handler.stream import FileStreamResolver, StaticStreamResolver
from logshipper.utils.config import get_config
from logshipper.utils.logging import configure_logging, get_logger

logger = get_logger("logshipper.main")


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='logshipper - batch log lines into CloudWatch Logs'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='YAML configuration file'
    )

    parser.add_argument(
        '--group',
        type=str,
        default=None,
        help='Existing log group name'
    )

    parser.add_argument(
        '--stream',
        type=str,
        default=None,
        help='Log stream name'
    )

    parser.add_argument(
        '--region',
        type=str,
        default=None,
        help='AWS region'
    )

    parser.add_argument(
        '--batch-size',
        type=int,
        default=None,
        help='Max events per request (default: 10000)'
    )

    parser.add_argument(
        '--state-file',
        type=str,
        default=None,
        help='File used to persist the sequence token between runs'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO)'
    )

    return parser.parse_args(argv)


def main(argv=None, stdin=None, client=None):
    """Main entry point."""
    args = parse_args(argv)
    config = get_config(args.config)

    if args.group:
        config.set("shipper.group", args.group)
    if args.stream:
        config.set("shipper.stream", args.stream)
    if args.batch_size:
        config.set("shipper.batch_size", args.batch_size)
    if args.region:
        config.set("aws.region", args.region)
    if args.log_level:
        config.set("logging.level", args.log_level)

    configure_logging(
        log_level=config.get("logging.level", "INFO"),
        log_format=config.get("logging.format", "json"),
    )

    group = config.get("shipper.group")
    stream = config.get("shipper.stream")

    if not group or not stream:
        logger.error("Log group and stream are required", group=group, stream=stream)
        return 2

    if client is None:
        region = config.get("aws.region")
        client = CloudWatchLogsClient(region_name=region) if region else CloudWatchLogsClient()

    if args.state_file:
        resolver = FileStreamResolver(args.state_file, stream)
    else:
        resolver = StaticStreamResolver(stream)

    try:
        shipper = LogShipper(
            client,
            group,
            resolver,
            config=ShipperConfig.from_config(config),
        )
    except ValueError as e:
        logger.error("Invalid configuration", error=str(e))
        return 2

    stdin = stdin or sys.stdin
    lines = 0

    try:
        with shipper:
            for line in stdin:
                line = line.rstrip("\n")
                if not line:
                    continue
                shipper.write(line)
                lines += 1

    except KeyboardInterrupt:
        # shipper already drained by the context manager
        logger.info("Received interrupt signal")

    except FlushError as e:
        logger.error("Shipping failed", error=str(e), lines=lines)
        return 1

    logger.info("Shipping finished", lines=lines, **shipper.metrics()["throttle"])
    return 0


if __name__ == '__main__':
    sys.exit(main())
