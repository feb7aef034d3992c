"""SiteLedger: construction project expense tracking."""

__version__ = "0.1.0"
