from .normalizer import normalize
from .pipeline import InventoryPipeline
from .reachability import ReachabilityFilter

__all__ = [
    "normalize",
    "InventoryPipeline",
    "ReachabilityFilter",
]
