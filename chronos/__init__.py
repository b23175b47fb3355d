"""chronos: a terminal time-tracking grid backed by Clockify."""

__version__ = "0.1.0"
