from .main import configure_logging, create_app
from .router import (
    ALL_OPERATIONS,
    HTTP_499_CLIENT_CLOSED_REQUEST,
    READ_OPERATIONS,
    build_crud_router,
    outcome_to_response,
)

__all__ = [
    "build_crud_router",
    "configure_logging",
    "create_app",
    "outcome_to_response",
    "ALL_OPERATIONS",
    "READ_OPERATIONS",
    "HTTP_499_CLIENT_CLOSED_REQUEST",
]
