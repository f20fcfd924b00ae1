"""Pick one pricing rule per time unit by scope specificity"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from app.core.enums import TimeUnit
from app.core.exceptions import NoPricingRuleError
from app.schemas.pricing import PriceRule, ProductView
from app.services.catalog import CatalogAccessor

logger = logging.getLogger(__name__)


def filter_applicable_rules(
    rules: Iterable[PriceRule],
    product_id: int,
    category_id: Optional[int],
    now: datetime
) -> List[PriceRule]:
    return [
        rule for rule in rules
        if rule.scope.matches(product_id, category_id) and rule.applies_at(now)
    ]


def select_best_rules(rules: Iterable[PriceRule]) -> Dict[TimeUnit, PriceRule]:
    """
    Keep the most specific rule for every unit.

    Product beats category beats default. On equal specificity the rule seen
    first wins, so the result only depends on input order.
    """
    best: Dict[TimeUnit, PriceRule] = {}
    for rule in rules:
        current = best.get(rule.unit)
        if current is None or rule.specificity > current.specificity:
            best[rule.unit] = rule
    return best


class RuleResolver:

    def __init__(self, catalog: CatalogAccessor):
        self.catalog = catalog

    async def resolve(
        self,
        product: ProductView,
        category_id: Optional[int],
        now: datetime
    ) -> Dict[TimeUnit, PriceRule]:
        candidates = await self.catalog.get_applicable_price_rules(product.id, category_id)
        applicable = filter_applicable_rules(candidates, product.id, category_id, now)

        if not applicable:
            raise NoPricingRuleError(product.id, category_id)

        best = select_best_rules(applicable)
        logger.debug(
            f"Resolved rules for product {product.id}: "
            + ", ".join(f"{unit}={rule.id}({rule.source})" for unit, rule in best.items())
        )
        return best
