"""Autonomous task-prioritization scheduler."""

__version__ = "0.1.0"
