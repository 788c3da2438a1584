"""Monitoring module."""

from .monitor import AlertMonitor, SignalAlert, SourceHealthStatus

__all__ = ["AlertMonitor", "SignalAlert", "SourceHealthStatus"]
