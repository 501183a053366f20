"""Registration domain - completing registration from a signed link"""

from .router import router

__all__ = ["router"]
