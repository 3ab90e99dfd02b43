"""Building blocks for a blockchain JSON-RPC proxy: payloads, errors, configuration, history, on-ramp URLs, signatures and name profiles."""

__version__ = "0.1.0"