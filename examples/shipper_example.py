#!/usr/bin/env python3
"""
Shipper example demonstrating batching, ordering and token recovery.

Runs against the in-memory service by default so it needs no AWS account.
"""

import argparse
import json
import logging
import time

from logshipper.client.memory import InMemoryLogService
from logshipper.handler.engine import LogShipper
from logshipper.handler.stream import StaticStreamResolver
from logshipper.integration.handler import LogShippingHandler


def main():
    parser = argparse.ArgumentParser(description='logshipper example')
    parser.add_argument('--group', default='example-group', help='Log group name')
    parser.add_argument('--stream', default='example-stream', help='Log stream name')
    parser.add_argument('--messages', type=int, default=25, help='Number of records to log')
    parser.add_argument('--batch-size', type=int, default=10, help='Records per request')
    parser.add_argument('--cloudwatch', action='store_true', help='Ship to real CloudWatch Logs')
    args = parser.parse_args()

    if args.cloudwatch:
        from logshipper.client.cloudwatch import CloudWatchLogsClient
        service = CloudWatchLogsClient()
    else:
        service = InMemoryLogService(groups=[args.group])

    shipper = LogShipper(
        service,
        args.group,
        StaticStreamResolver(args.stream),
        batch_size=args.batch_size,
    )

    app_logger = logging.getLogger('example.app')
    app_logger.setLevel(logging.INFO)
    app_logger.addHandler(LogShippingHandler(shipper, level=logging.INFO))

    print(f"Logging {args.messages} records to {args.group}/{args.stream}")

    try:
        for i in range(args.messages):
            app_logger.info(json.dumps({'id': i, 'value': f'Record number {i}'}))

            if (i + 1) % 10 == 0:
                print(f"Logged {i + 1} records...")

        # a foreign writer advances the stream; the next flush recovers
        if isinstance(service, InMemoryLogService) and shipper.token is not None:
            service.advance(args.group, args.stream, [
                {'timestamp': int(time.time() * 1000), 'message': 'from another writer'},
            ])
            app_logger.info('after foreign write')

    finally:
        shipper.close()

    print(json.dumps(shipper.metrics(), indent=2))

    if isinstance(service, InMemoryLogService):
        events = service.events(args.group, args.stream)
        print(f"\n[OK] Stream holds {len(events)} events")


if __name__ == '__main__':
    main()
