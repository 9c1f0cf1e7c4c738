"""NetPilot - QoS rule management over tc."""

__version__ = "0.1.0"
