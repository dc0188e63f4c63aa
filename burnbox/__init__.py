"""
BurnBox

Ephemeral file sharing backed by an expiring, quota-aware object store.
"""

__version__ = "1.0.0"
