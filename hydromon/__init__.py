"""Hydroponic reservoir telemetry decoding and monitoring."""

__version__ = "0.1.0"
