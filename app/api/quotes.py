"""Pricing quote endpoints with Redis caching"""
import json
import hashlib
import logging
from datetime import datetime, timezone
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NoPricingRuleError, PricingError
from app.core.metrics import cache_hits, cache_misses, quotes_total
from app.core.redis import get_redis
from app.db.session import get_db
from app.schemas.quote import ProductRulesOut, Quote, RuleOut
from app.services.catalog import CatalogAccessor, SqlCatalog
from app.services.pricing import QuoteCalculator
from app.utils.dates import as_utc

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/pricing", tags=["pricing"])


def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogAccessor:
    return SqlCatalog(db)


def get_now() -> datetime:
    return datetime.now(timezone.utc)


def _generate_cache_key(product_id: int, start: datetime, end: datetime) -> str:
    params_str = json.dumps(
        {
            "product_id": product_id,
            "start": as_utc(start).astimezone(timezone.utc).isoformat(),
            "end": as_utc(end).astimezone(timezone.utc).isoformat(),
        },
        sort_keys=True
    )
    return f"quote:{hashlib.sha256(params_str.encode()).hexdigest()}"


def _raise_http(exc: PricingError) -> NoReturn:
    if isinstance(exc, NoPricingRuleError):
        # Catalog is missing pricing data, not something the client can fix
        logger.error(f"Pricing configuration error: {exc.message}")
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


@router.get("/quote", response_model=Quote)
async def get_quote(
    product_id: int = Query(..., alias="productId"),
    start: datetime = Query(...),
    end: datetime = Query(...),
    catalog: CatalogAccessor = Depends(get_catalog),
    now: datetime = Depends(get_now)
):
    cache_key = _generate_cache_key(product_id, start, end)
    redis = get_redis()

    if redis is not None:
        try:
            cached = await redis.get(cache_key)
            if cached:
                cache_hits.labels(cache_key="quote").inc()
                return Quote.model_validate_json(cached)
            cache_misses.labels(cache_key="quote").inc()
        except Exception as e:
            logger.warning(f"Cache retrieval failed: {e}")

    try:
        quote = await QuoteCalculator(catalog).compute_quote(product_id, start, end, now)
    except PricingError as exc:
        quotes_total.labels(outcome=type(exc).__name__).inc()
        _raise_http(exc)
    quotes_total.labels(outcome="ok").inc()

    if redis is not None:
        try:
            await redis.set(
                cache_key,
                quote.model_dump_json(),
                ex=settings.PRICE_CACHE_TTL
            )
        except Exception as e:
            logger.warning(f"Cache write failed: {e}")

    return quote


@router.get("/products/{product_id}/rules", response_model=ProductRulesOut)
async def get_product_rules(
    product_id: int,
    catalog: CatalogAccessor = Depends(get_catalog),
    now: datetime = Depends(get_now)
):
    try:
        product = await catalog.get_product(product_id)
    except PricingError as exc:
        _raise_http(exc)

    rules = await catalog.get_applicable_price_rules(product.id, product.category_id)

    return ProductRulesOut(
        product_id=product.id,
        product_name=product.name,
        category_id=product.category_id,
        category_name=product.category_name,
        rules=[
            RuleOut(
                id=rule.id,
                unit=rule.unit,
                rate=rule.rate,
                min_duration=rule.min_duration,
                max_duration=rule.max_duration,
                valid_from=rule.valid_from,
                valid_to=rule.valid_to,
                source=rule.source,
                specificity=rule.specificity,
                pricelist=rule.pricelist_name,
                valid_now=rule.is_valid_at(now),
            )
            for rule in rules
            if rule.pricelist_active
        ],
    )
