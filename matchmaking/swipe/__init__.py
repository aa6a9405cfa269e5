"""
Swipe Module - swipe state machine and super-like escalation.

- events.py: Match / super-like notification events
- service.py: SwipeService (swipe, super_like, get_matches, repair_missing_rooms)
"""

from matchmaking.swipe.service import SwipeService

__all__ = ['SwipeService']
