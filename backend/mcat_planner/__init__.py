"""MCAT study schedule planner backend."""

__version__ = "0.1.0"
