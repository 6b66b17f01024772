from .fact_collector import FactCollector

__all__ = [
    "FactCollector",
]
