"""Account domain - authentication and client administration"""

from .router import clients_router, router

__all__ = ["router", "clients_router"]
