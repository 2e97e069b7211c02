"""userloader: bulk user provisioning against a rate-limited HTTP API."""

__version__ = "1.0.0"
