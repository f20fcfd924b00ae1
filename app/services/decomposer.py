"""Greedy split of a rental duration into billable units"""
import math
from decimal import Decimal
from typing import List, Mapping, Tuple, Union

from app.core.enums import TimeUnit, UNIT_PRIORITY
from app.schemas.pricing import PriceRule
from app.schemas.quote import BreakdownEntry

Hours = Union[Decimal, int, float]


def to_hours(value: Hours) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def units_for(unit: TimeUnit, remaining: Decimal, rule: PriceRule) -> int:
    if unit is TimeUnit.HOUR:
        # The finest unit bills any partial hour as a whole one
        units = math.ceil(remaining)
    else:
        units = math.floor(remaining / unit.hours)

    if rule.min_duration and units < rule.min_duration:
        units = 0
    if rule.max_duration and units > rule.max_duration:
        units = rule.max_duration
    return units


def decompose(
    duration_hours: Hours,
    rules_by_unit: Mapping[TimeUnit, PriceRule]
) -> Tuple[List[BreakdownEntry], Decimal]:
    remaining = to_hours(duration_hours)
    breakdown: List[BreakdownEntry] = []
    subtotal = Decimal("0")

    for unit in UNIT_PRIORITY:
        if remaining <= 0:
            break
        rule = rules_by_unit.get(unit)
        if rule is None:
            continue

        units = units_for(unit, remaining, rule)
        if units <= 0:
            continue

        cost = rule.rate * units
        breakdown.append(BreakdownEntry(
            unit=unit,
            quantity=units,
            rate=rule.rate,
            cost=cost,
            rule_id=rule.id,
            source=rule.source,
        ))
        subtotal += cost
        remaining -= units * unit.hours

    return breakdown, subtotal


def covered_hours(breakdown: List[BreakdownEntry]) -> int:
    return sum(entry.quantity * entry.unit.hours for entry in breakdown)


def uncovered_hours(duration_hours: Hours, breakdown: List[BreakdownEntry]) -> Decimal:
    """Hours of the window the breakdown leaves unbilled (never negative)."""
    left = to_hours(duration_hours) - covered_hours(breakdown)
    return left if left > 0 else Decimal("0")
