"""Ingestion layer.

This package contains adapters that turn push payloads and snapshot
responses into typed HUD, timer and toast messages.
"""

__all__: list[str] = []
