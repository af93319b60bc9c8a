"""Desired and observed Azure infrastructure topology for managed Kubernetes clusters."""

__version__ = "0.1.0"
