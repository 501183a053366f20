"""Onboarding domain - questionnaire, approval and profile unlock"""

from .router import router

__all__ = ["router"]
