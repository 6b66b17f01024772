from .facts import CATEGORY_PROPERTIES, CIM_CLASSES, QueryCategory, QueryFilter, RawFacts
from .machine import MachineInfo
from .results import HostResult, UpsertResult
from .table import TableRef

__all__ = [
    "CATEGORY_PROPERTIES",
    "CIM_CLASSES",
    "QueryCategory",
    "QueryFilter",
    "RawFacts",
    "MachineInfo",
    "HostResult",
    "UpsertResult",
    "TableRef",
]
