"""API route modules."""

from . import actions, orders, recommendations, status, tables, websocket

__all__ = ["actions", "orders", "recommendations", "status", "tables", "websocket"]
