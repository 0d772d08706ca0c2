"""Route cinematic timeline and preview engine."""

__version__ = "0.1.0"
