"""Deal Doctor: deterministic stalled-deal diagnosis for B2B sellers."""
__version__ = "0.1.0"
