"""Application domain - job application pipeline per client"""

from .router import router

__all__ = ["router"]
