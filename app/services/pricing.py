import logging
import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from app.core.config import settings
from app.core.enums import CoveragePolicy, TimeUnit
from app.core.exceptions import InvalidWindowError, PartialCoverageError, ProductUnavailableError
from app.schemas.pricing import PriceRule
from app.schemas.quote import Quote, ResolvedRule
from app.services.catalog import CatalogAccessor
from app.services.decomposer import decompose, uncovered_hours
from app.services.rule_resolver import RuleResolver
from app.utils.dates import as_utc

logger = logging.getLogger(__name__)

MICROSECONDS_PER_HOUR = Decimal(3600 * 1_000_000)


def window_hours(start: datetime, end: datetime) -> Decimal:
    return Decimal((end - start) // timedelta(microseconds=1)) / MICROSECONDS_PER_HOUR


def describe_rules(rules_by_unit: Dict[TimeUnit, PriceRule]) -> List[ResolvedRule]:
    return [
        ResolvedRule(
            id=rule.id,
            unit=rule.unit,
            rate=rule.rate,
            specificity=rule.specificity,
            source=rule.source,
            pricelist=rule.pricelist_name,
        )
        for rule in rules_by_unit.values()
    ]


class QuoteCalculator:

    def __init__(
        self,
        catalog: CatalogAccessor,
        coverage_policy: Optional[CoveragePolicy] = None
    ):
        self.catalog = catalog
        self.resolver = RuleResolver(catalog)
        self.coverage_policy = coverage_policy or settings.PARTIAL_COVERAGE_POLICY

    async def compute_quote(
        self,
        product_id: int,
        start: datetime,
        end: datetime,
        now: Optional[datetime] = None
    ) -> Quote:
        start, end = as_utc(start), as_utc(end)
        if end <= start:
            raise InvalidWindowError(start, end)

        product = await self.catalog.get_product(product_id)
        if not product.is_available:
            raise ProductUnavailableError(product_id)

        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        duration_hours = window_hours(start, end)

        rules_by_unit = await self.resolver.resolve(product, product.category_id, now)
        breakdown, subtotal = decompose(duration_hours, rules_by_unit)

        left = uncovered_hours(duration_hours, breakdown)
        if left > 0:
            if self.coverage_policy == CoveragePolicy.REJECT:
                raise PartialCoverageError(product_id, left)
            logger.warning(
                f"Quote for product {product_id} leaves {left}h unbilled "
                f"(units priced: {', '.join(str(unit) for unit in rules_by_unit)})"
            )

        # Flat amount, not scaled by rental length
        deposit = product.daily_deposit if product.daily_deposit is not None else Decimal("0")

        return Quote(
            product_id=product.id,
            product_name=product.name,
            start=start,
            end=end,
            duration_hours=duration_hours,
            billable_hours=math.ceil(duration_hours),
            billable_days=math.ceil(duration_hours / 24),
            breakdown=breakdown,
            subtotal=subtotal,
            deposit=deposit,
            total=subtotal + deposit,
            uncovered_hours=left,
            best_rules=describe_rules(rules_by_unit),
            computed_at=now,
        )


async def compute_quote(
    catalog: CatalogAccessor,
    product_id: int,
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None
) -> Quote:
    return await QuoteCalculator(catalog).compute_quote(product_id, start, end, now)
