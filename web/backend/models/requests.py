#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

from pydantic import BaseModel, Field


class SwipeRequest(BaseModel):
    """Request to record a swipe."""
    target_id: str = Field(..., min_length=1, description="User being swiped on")
    direction: str = Field(..., description="Swipe direction: left or right")


class SuperLikeRequest(BaseModel):
    """Request to super-like a user."""
    target_id: str = Field(..., min_length=1, description="User being super-liked")
