"""Table-status synchronization, service priority and seating recommendations."""

__version__ = "1.0.0"
