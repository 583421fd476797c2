"""Shared services: document store, analytics, rate limiting and export."""
