"""ADO service-hook receiver: verifies inbound notifications and dispatches them."""

__version__ = "0.3.0"
