"""Shared building blocks used by every app: pagination, permissions,
tenant scoping, domain exceptions and websocket authentication."""
