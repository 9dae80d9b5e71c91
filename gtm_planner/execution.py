from collections import defaultdict

HIGH_PRIORITY_SCORE = 500
MEDIUM_PRIORITY_SCORE = 100

REACH_OPTIONS = (1, 10, 100, 1000)
CONFIDENCE_OPTIONS = (20, 50, 80)


def priority_score(reach, confidence):
    """Reach x confidence / 10; unscored when either input is missing."""
    if not reach or not confidence:
        return 0
    return (reach * confidence) / 10


def priority_label(score):
    if score >= HIGH_PRIORITY_SCORE:
        return 'High Priority'
    if score >= MEDIUM_PRIORITY_SCORE:
        return 'Medium Priority'
    if score > 0:
        return 'Low Priority'
    return 'Not Scored'


def execution_summary(gtm_groups, gtm_group_revenue_breakdown=None):
    """
    Resource totals and priority ranking for a set of GTM motions.

    Returns total budget, headcount summed by role, and one entry per motion
    sorted by priority score (highest first, ties keep input order) with the
    motion's ARR impact from the metrics engine.
    """
    revenue = gtm_group_revenue_breakdown or {}
    total_budget = 0
    headcount = defaultdict(int)
    ranked = []

    for gtm in gtm_groups:
        plan = gtm.execution_plan
        score = priority_score(plan.reach, plan.confidence) if plan else 0
        if plan:
            total_budget += plan.budget_usd or 0
            for role in plan.headcount_needed:
                headcount[role.role] += role.count
        breakdown = revenue.get(gtm.id)
        ranked.append({
            'gtm_group_id': gtm.id,
            'name': gtm.name,
            'score': score,
            'label': priority_label(score),
            'budget_usd': plan.budget_usd if plan else 0,
            'impact_arr': breakdown.arr if breakdown else 0.0,
        })

    ranked.sort(key=lambda item: item['score'], reverse=True)
    return {
        'total_budget': total_budget,
        'headcount_by_role': dict(headcount),
        'motions': ranked,
    }
