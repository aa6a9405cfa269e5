#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.

Services are built once per process from the AppContext. Tests replace them
through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

from matchmaking.app_context import AppContext
from matchmaking.discovery.service import CandidateDiscoveryService
from matchmaking.quota.service import QuotaService
from matchmaking.swipe.service import SwipeService
from .config import get_config


@lru_cache()
def get_app_context() -> AppContext:
    """Build the application context on first use."""
    return AppContext.build(get_config())


def get_discovery_service() -> CandidateDiscoveryService:
    return get_app_context().discovery_service


def get_swipe_service() -> SwipeService:
    return get_app_context().swipe_service


def get_quota_service() -> QuotaService:
    return get_app_context().quota_service


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    Caller identity from the X-User-Id header.

    Authentication happens upstream (API gateway); this service trusts the
    header it is given.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()
