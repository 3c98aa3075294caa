"""
Lead intake service for Framer enrollment webhooks.
Signature verification, deduplicated storage and SMS confirmation.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
