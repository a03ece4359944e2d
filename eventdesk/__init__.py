"""EventDesk: event registration API with capacity-checked seat booking."""

__version__ = "1.0.0"
