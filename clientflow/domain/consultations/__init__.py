"""Consultation domain - prospect requests, slot confirmation, reschedules"""

from .router import router

__all__ = ["router"]
