"""
Plan snapshot types.

A scenario is a read-only tree: Scenario -> Plan -> GtmGroup -> Segment.
Snapshots are rebuilt by the caller on every pass and never mutated by the
engine; use dataclasses.replace() to derive edited copies.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple


# =============================================================================
# ENUMS
# =============================================================================

class SegmentTier(str, Enum):
    SMB = 'SMB'
    MM = 'MM'
    ENT = 'ENT'
    ENT_PLUS = 'ENT+'
    FLAGSHIP = 'Flagship'


class PlanType(str, Enum):
    BASELINE = 'Baseline'
    STRETCH = 'Stretch'


class ScenarioType(str, Enum):
    BASELINE = 'Baseline'
    STRETCH = 'Stretch'
    CUSTOM = 'Custom'


class GtmType(str, Enum):
    SALES = 'Sales'
    MARKETING = 'Marketing'
    PARTNERSHIPS = 'Partnerships'
    CUSTOM = 'Custom'


class SegmentGroup(str, Enum):
    SMB = 'SMB'
    MID_MARKET = 'Mid-Market'
    ENTERPRISE = 'Enterprise'


# Every tier must appear in both tables.
SEGMENT_GROUP_MAPPING = {
    SegmentTier.SMB: SegmentGroup.SMB,
    SegmentTier.MM: SegmentGroup.MID_MARKET,
    SegmentTier.ENT: SegmentGroup.MID_MARKET,
    SegmentTier.ENT_PLUS: SegmentGroup.ENTERPRISE,
    SegmentTier.FLAGSHIP: SegmentGroup.ENTERPRISE,
}

DEFAULT_SPM = {
    SegmentTier.SMB: 100,
    SegmentTier.MM: 500,
    SegmentTier.ENT: 1000,
    SegmentTier.ENT_PLUS: 3000,
    SegmentTier.FLAGSHIP: 5000,
}

SEGMENT_GROUPS = (SegmentGroup.SMB, SegmentGroup.MID_MARKET, SegmentGroup.ENTERPRISE)


# =============================================================================
# ASSUMPTION INPUTS
# =============================================================================

@dataclass(frozen=True)
class ConversionRate:
    opp_to_close_pct: float
    avg_days_to_close: int


@dataclass(frozen=True)
class Seasonality:
    """November/December volume boosts in percent (40 means +40%)."""
    november: float = 0.0
    december: float = 0.0


@dataclass(frozen=True)
class ScenarioSettings:
    seasonality: Mapping[SegmentTier, Seasonality] = field(default_factory=dict)
    integration_timeline_days: Mapping[SegmentTier, int] = field(default_factory=dict)


# =============================================================================
# PLAN TREE
# =============================================================================

@dataclass(frozen=True)
class HeadcountRole:
    role: str
    count: int


@dataclass(frozen=True)
class ExecutionPlan:
    reach: Optional[int] = None
    confidence: Optional[int] = None
    budget_usd: float = 0
    headcount_needed: Tuple[HeadcountRole, ...] = ()
    partner_dependencies: Optional[str] = None
    product_requirements: Optional[str] = None
    carrier_requirements: Optional[str] = None


@dataclass(frozen=True)
class Segment:
    id: str
    segment_type: SegmentTier
    spm: float
    launches: Tuple[int, ...]


@dataclass(frozen=True)
class GtmGroup:
    id: str
    name: str
    type: GtmType
    segments: Tuple[Segment, ...] = ()
    sort_order: int = 0
    collapsed: bool = False
    execution_plan: Optional[ExecutionPlan] = None


@dataclass(frozen=True)
class Plan:
    id: str
    type: PlanType
    gtm_groups: Tuple[GtmGroup, ...] = ()
    collapsed: bool = False


@dataclass(frozen=True)
class Scenario:
    id: str
    name: str
    type: ScenarioType
    target_shipments: float
    rps: float
    plans: Tuple[Plan, ...] = ()
    settings: ScenarioSettings = field(default_factory=ScenarioSettings)
    collapsed: bool = False

    def segment_index(self) -> Dict[str, Segment]:
        return {
            seg.id: seg
            for plan in self.plans
            for gtm in plan.gtm_groups
            for seg in gtm.segments
        }
