from datetime import date
from typing import Iterable

from ..entities import PricingRule, RateResolution, RuleKind, Site
from .dates import weekday_index


def rule_applies(rule: PricingRule, check_in: date, nights: int) -> bool:
    if rule.kind == RuleKind.SEASONAL:
        if rule.start_date is None or rule.end_date is None:
            return False
        # matched on check-in only, both ends inclusive
        return rule.start_date <= check_in <= rule.end_date
    if rule.kind == RuleKind.LENGTH_OF_STAY:
        return rule.minimum_nights is not None and nights >= rule.minimum_nights
    if rule.kind == RuleKind.DAY_OF_WEEK:
        return weekday_index(check_in) in rule.days_of_week
    return False


def resolve_rate(
    site: Site, check_in: date, nights: int, rules: Iterable[PricingRule]
) -> RateResolution:
    """
    Fold every applicable rule into one nightly rate and one discount percent.

    Rules are not first-match-wins: overrides replace the rate (the last
    applicable one sticks), percentages add up (negative = surcharge), and
    every applicable rule is named in evaluation order. Rules scoped to
    another site are skipped.
    """
    price_per_night = site.base_price
    cumulative = 0.0
    applied = []

    for rule in rules:
        if not (rule.is_global or rule.site_id == site.id):
            continue
        if not rule_applies(rule, check_in, nights):
            continue
        if rule.price_override is not None:
            price_per_night = rule.price_override
        if rule.discount_percentage is not None:
            cumulative += rule.discount_percentage
        applied.append(rule.name)

    return RateResolution(
        price_per_night=price_per_night,
        cumulative_discount_percent=cumulative,
        applied_rule_names=applied,
    )
