"""Host-side ARQ transport components: sequence windows, queues, locks, daemon control and stream helpers."""

__version__ = "0.1.0"