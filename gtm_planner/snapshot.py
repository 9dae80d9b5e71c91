"""
Snapshot construction at the persistence boundary.

The store returns nested records (scenario -> plans -> gtm_groups ->
segments); these helpers turn them into read-only Scenario snapshots, check
the engine's preconditions, and derive filtered or locally edited copies.
"""

import logging
import numbers
from dataclasses import replace

from gtm_planner.config import N_MONTHS, normalize_settings
from gtm_planner.execution import CONFIDENCE_OPTIONS, REACH_OPTIONS
from gtm_planner.models import (
    ExecutionPlan,
    GtmGroup,
    GtmType,
    HeadcountRole,
    Plan,
    PlanType,
    Scenario,
    ScenarioType,
    Segment,
    SegmentTier,
)

logger = logging.getLogger(__name__)

REQUIRED_SCENARIO_KEYS = ['id', 'name', 'target_shipments', 'rps']
SEGMENT_FILTERS = ('all', 'sales', 'smb')


def _enum(enum_cls, value, what):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [e.value for e in enum_cls]
        raise ValueError(f"Unknown {what} {value!r}; expected one of {allowed}") from None


# --- Records -> snapshot ---

def _execution_plan_from_record(gtm_record):
    record = gtm_record.get('execution_plan')
    if record is None:
        plans = gtm_record.get('gtm_execution_plans') or []
        record = plans[0] if plans else None
    if record is None:
        return None
    reach, confidence = record.get('reach'), record.get('confidence')
    if reach is not None and reach not in REACH_OPTIONS:
        raise ValueError(f"Execution plan reach {reach!r} not in {list(REACH_OPTIONS)}")
    if confidence is not None and confidence not in CONFIDENCE_OPTIONS:
        raise ValueError(f"Execution plan confidence {confidence!r} not in {list(CONFIDENCE_OPTIONS)}")
    return ExecutionPlan(
        reach=reach,
        confidence=confidence,
        budget_usd=record.get('budget_usd') or 0,
        headcount_needed=tuple(
            HeadcountRole(role=hc['role'], count=int(hc['count']))
            for hc in record.get('headcount_needed') or []
        ),
        partner_dependencies=record.get('partner_dependencies'),
        product_requirements=record.get('product_requirements'),
        carrier_requirements=record.get('carrier_requirements'),
    )


def _segment_from_record(record):
    return Segment(
        id=str(record['id']),
        segment_type=_enum(SegmentTier, record['segment_type'], 'segment type'),
        spm=record['spm'],
        launches=tuple(record.get('launches') or ()),
    )


def _gtm_group_from_record(record):
    ordered = sorted(record.get('segments') or [], key=lambda s: s.get('created_at') or '')
    return GtmGroup(
        id=str(record['id']),
        name=record.get('name', ''),
        type=_enum(GtmType, record.get('type', GtmType.CUSTOM.value), 'GTM type'),
        segments=tuple(_segment_from_record(s) for s in ordered),
        sort_order=int(record.get('sort_order') or 0),
        collapsed=bool(record.get('collapsed', False)),
        execution_plan=_execution_plan_from_record(record),
    )


def _plan_from_record(record):
    groups = sorted(record.get('gtm_groups') or [], key=lambda g: g.get('sort_order') or 0)
    return Plan(
        id=str(record['id']),
        type=_enum(PlanType, record['type'], 'plan type'),
        gtm_groups=tuple(_gtm_group_from_record(g) for g in groups),
        collapsed=bool(record.get('collapsed', False)),
    )


def scenario_from_records(record, validate=True):
    """Build a Scenario snapshot from the store's nested scenario record."""
    missing = set(REQUIRED_SCENARIO_KEYS) - set(record)
    if missing:
        raise ValueError(f"Scenario record missing keys: {sorted(missing)}")

    plan_order = {PlanType.BASELINE: 0, PlanType.STRETCH: 1}
    plans = sorted(
        (_plan_from_record(p) for p in record.get('plans') or []),
        key=lambda p: plan_order[p.type],
    )
    scenario = Scenario(
        id=str(record['id']),
        name=record['name'],
        type=_enum(ScenarioType, record.get('type', ScenarioType.CUSTOM.value), 'scenario type'),
        target_shipments=record['target_shipments'],
        rps=record['rps'],
        plans=tuple(plans),
        settings=normalize_settings(record.get('settings')),
        collapsed=bool(record.get('collapsed', False)),
    )
    if validate:
        validate_segments(scenario)
    return scenario


# --- Preconditions ---

def _is_number(value):
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def validate_segments(scenario):
    """
    Check the engine's input preconditions.

    Raises ValueError for launches that are not 12 non-negative numbers or a
    negative/non-numeric SPM. A scenario without the Baseline/Stretch plan
    pair is legal but unusual, so it only logs a warning.
    """
    if not scenario.plans:
        logger.warning(f"Scenario {scenario.id} has no plans")
    else:
        plan_types = sorted(PlanType(p.type).value for p in scenario.plans)
        if plan_types != sorted(t.value for t in PlanType):
            logger.warning(f"Scenario {scenario.id} has plans {plan_types}, expected one Baseline and one Stretch")

    for plan in scenario.plans:
        for gtm_group in plan.gtm_groups:
            for segment in gtm_group.segments:
                if len(segment.launches) != N_MONTHS:
                    raise ValueError(
                        f"Segment {segment.id} has {len(segment.launches)} launch months, expected {N_MONTHS}"
                    )
                bad = [v for v in segment.launches if not _is_number(v) or v < 0]
                if bad:
                    raise ValueError(f"Segment {segment.id} has invalid launch counts: {bad}")
                if not _is_number(segment.spm) or segment.spm < 0:
                    raise ValueError(f"Segment {segment.id} has invalid SPM: {segment.spm!r}")
    return True


# --- Derived snapshots ---

def _map_segments(scenario, fn):
    return replace(scenario, plans=tuple(
        replace(plan, gtm_groups=tuple(
            replace(gtm, segments=tuple(s for s in (fn(seg) for seg in gtm.segments) if s is not None))
            for gtm in plan.gtm_groups
        ))
        for plan in scenario.plans
    ))


def apply_local_overrides(scenario, launches=None, spm=None):
    """
    Merge pending per-segment edits (not yet persisted) into a new snapshot.

    launches maps segment id -> 12 launch counts, spm maps segment id -> SPM.
    """
    launches = launches or {}
    spm = spm or {}

    def override(segment):
        changes = {}
        if segment.id in launches:
            changes['launches'] = tuple(launches[segment.id])
        if segment.id in spm:
            changes['spm'] = spm[segment.id]
        return replace(segment, **changes) if changes else segment

    return _map_segments(scenario, override)


def filter_by_segment(scenario, segment_filter='all'):
    """'smb' keeps SMB segments only, 'sales' keeps every other tier."""
    if segment_filter not in SEGMENT_FILTERS:
        raise ValueError(f"Unknown segment filter {segment_filter!r}; expected one of {list(SEGMENT_FILTERS)}")
    if segment_filter == 'all':
        return scenario
    want_smb = segment_filter == 'smb'
    return _map_segments(
        scenario,
        lambda seg: seg if (seg.segment_type == SegmentTier.SMB) == want_smb else None,
    )


def filter_by_source(scenario, source_filter='all'):
    """Keep only GTM groups of one motion type."""
    if source_filter == 'all':
        return scenario
    gtm_type = _enum(GtmType, source_filter, 'GTM type')
    return replace(scenario, plans=tuple(
        replace(plan, gtm_groups=tuple(g for g in plan.gtm_groups if g.type == gtm_type))
        for plan in scenario.plans
    ))
