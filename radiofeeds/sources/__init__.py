from . import broadcastify
from .base import ListingSource

__all__ = ["ListingSource", "broadcastify"]
