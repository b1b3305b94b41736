"""State layer.

This package is the single source of truth for how push messages,
fallback polls and snapshot fetches are merged into the HUD readout and
the countdown timers.
"""
