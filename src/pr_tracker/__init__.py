"""Personal record tracking and workout session reconciliation."""

__version__ = "0.1.0"
