from .adapter import BroadcastifySource
from ...registry import registry

registry.register("broadcastify", BroadcastifySource.from_config)

__all__ = ["BroadcastifySource"]
