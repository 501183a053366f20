"""Payment domain - payment verification and registration invitations"""

from .router import router

__all__ = ["router"]
