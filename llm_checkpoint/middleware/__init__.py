"""HTTP middleware and exception handlers."""

from .exception_handler import checkpoint_exception_handler
from .request_context import RequestContextMiddleware

__all__ = ["checkpoint_exception_handler", "RequestContextMiddleware"]
