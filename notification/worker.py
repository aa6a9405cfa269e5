#!/usr/bin/env python3
"""
RQ worker for the match notification queue.

Jobs are ``process_notification_task`` calls; the in-app channel writes to
the same database as the API, so the worker binds its engine from config.yaml
before it starts.

Usage:
    python -m notification.worker
    python -m notification.worker --burst
    python -m notification.worker --config config.yaml --verbose
"""

import sys
import argparse
import logging
from typing import List, Optional

from redis import Redis
from rq import Worker

from database.database import configure_engine
from matchmaking.config_loader import load_config
from notification.service import QUEUE_NAME

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def start_worker(config_path: str = "config.yaml", burst: bool = False, queues: Optional[List[str]] = None):
    """Start an RQ worker on the notification queue(s)."""
    config = load_config(config_path)
    redis_url = config.notifications.redis_url or config.redis.url
    queues = queues or [QUEUE_NAME]

    configure_engine(config.database.url)
    logger.info(f"Starting notification worker on {', '.join(queues)} (burst={burst})")

    try:
        redis_conn = Redis.from_url(redis_url)
        redis_conn.ping()

        worker = Worker(queues, connection=redis_conn)
        worker.work(burst=burst)

    except KeyboardInterrupt:
        logger.info("Worker stopped")
    except Exception as e:
        logger.error(f"Worker failed: {e}")
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(description='Match Notification Worker')
    parser.add_argument('--config', default='config.yaml')
    parser.add_argument('--burst', action='store_true', help='Process all and exit')
    parser.add_argument('--queues', nargs='+', default=[QUEUE_NAME])
    parser.add_argument('--verbose', action='store_true')

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    start_worker(config_path=args.config, burst=args.burst, queues=args.queues)


if __name__ == '__main__':
    main()
