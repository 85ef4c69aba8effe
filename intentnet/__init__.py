"""Intent broadcast network: topic monitoring, bidding, routing, processing and network status."""

__version__ = "0.1.0"