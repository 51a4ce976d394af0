"""HTTP middleware for the giving API."""

from giving_api.middleware.correlation import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware"]
