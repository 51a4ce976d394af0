"""PayFast giving gateway: payment redirects and ITN reconciliation."""

__version__ = "0.1.0"
