#!/usr/bin/env python3
"""
Sweep matched pairs that have no chat room and create the missing rooms.

Chat room creation happens after a match commits; if it failed, the pair stays
matched without a room until a read repairs it or this sweep runs.

Usage:
    python scripts/repair_chat_rooms.py
    python scripts/repair_chat_rooms.py --limit 500
"""

import argparse
import logging
import sys

from matchmaking.app_context import AppContext
from matchmaking.config_loader import load_config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Repair missing chat rooms for matched pairs')
    parser.add_argument('--limit', type=int, default=100, help='Maximum records to inspect')
    parser.add_argument('--config', default='config.yaml')
    args = parser.parse_args()

    ctx = AppContext.build(load_config(args.config))
    repaired = ctx.swipe_service.repair_missing_rooms(limit=args.limit)
    logger.info(f"Repaired {repaired} chat rooms")
    return 0


if __name__ == '__main__':
    sys.exit(main())
