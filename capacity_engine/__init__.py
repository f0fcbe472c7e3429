"""
Capacity Engine

Computes available, allocated and actual hours per calendar period for a
user, department, account or the whole organization.
"""

__version__ = "1.0.0"

from .config import Config, CapacityPolicy

from .periods import (
    Granularity,
    Period,
    generate_periods,
    week_start_of
)

from .availability import (
    AvailabilityIndex,
    available_hours
)

from .allocation import (
    AllocationSpreader,
    WorkItem,
    WorkItemKind
)

from .resolver import WorkItemResolver

from .actuals import actual_hours

from .calculator import (
    CapacityCalculator,
    CapacityPoint,
    CapacitySnapshot,
    CapacitySummary
)

from .service import (
    CapacityBreakdown,
    CapacityService,
    MemberCapacity,
    Scope,
    ScopeKind,
    compute_capacity
)

__all__ = [
    # Version
    "__version__",

    # Configuration
    "Config",
    "CapacityPolicy",

    # Periods
    "Granularity",
    "Period",
    "generate_periods",
    "week_start_of",

    # Aggregation
    "AvailabilityIndex",
    "available_hours",
    "actual_hours",

    # Allocation
    "AllocationSpreader",
    "WorkItem",
    "WorkItemKind",
    "WorkItemResolver",

    # Calculator
    "CapacityCalculator",
    "CapacityPoint",
    "CapacitySnapshot",
    "CapacitySummary",

    # Service
    "CapacityBreakdown",
    "CapacityService",
    "MemberCapacity",
    "Scope",
    "ScopeKind",
    "compute_capacity",
]
