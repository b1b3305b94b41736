"""Endpoint modules for the mission server API."""
