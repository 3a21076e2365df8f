"""FastAPI integration: exception handlers for the problem envelope."""

from pagekit.app.exception_handlers import configure_exception_handlers

__all__ = ["configure_exception_handlers"]
