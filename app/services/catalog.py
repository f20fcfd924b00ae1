"""Read access to products and pricelist rules"""
import logging
from typing import List, Optional, Protocol

from sqlalchemy import and_, case, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.exceptions import ProductUnavailableError
from app.core.metrics import track_db_operation
from app.models.category import Category
from app.models.product import Product
from app.models.pricelist import Pricelist, PricelistItem
from app.schemas.pricing import CategoryScope, DefaultScope, PriceRule, ProductScope, ProductView

logger = logging.getLogger(__name__)


class CatalogAccessor(Protocol):

    async def get_product(self, product_id: int) -> ProductView:
        ...

    async def get_applicable_price_rules(
        self,
        product_id: int,
        category_id: Optional[int]
    ) -> List[PriceRule]:
        ...


def build_scope(item: PricelistItem):
    if item.product_id is not None:
        return ProductScope(product_id=item.product_id)
    if item.category_id is not None:
        return CategoryScope(category_id=item.category_id)
    return DefaultScope()


def build_price_rule(item: PricelistItem, pricelist: Pricelist) -> PriceRule:
    return PriceRule(
        id=item.id,
        unit=item.unit,
        rate=item.rate,
        scope=build_scope(item),
        min_duration=item.min_duration,
        max_duration=item.max_duration,
        valid_from=item.valid_from,
        valid_to=item.valid_to,
        pricelist_name=pricelist.name,
        pricelist_active=bool(pricelist.is_active),
    )


def build_product_view(product: Product, category_name: Optional[str] = None) -> ProductView:
    return ProductView(
        id=product.id,
        name=product.name,
        category_id=product.category_id,
        category_name=category_name,
        is_active=bool(product.is_active),
        is_rentable=bool(product.is_rentable),
        daily_deposit=product.daily_deposit,
    )


class SqlCatalog:
    """
    Catalog backed by the pricelist tables.

    Rules come back with their pricelist flag and validity window untouched;
    filtering by "active now" is left to the resolver.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @track_db_operation("select", "products")
    async def get_product(self, product_id: int) -> ProductView:
        res = await self.db.execute(
            select(Product, Category.name)
            .outerjoin(Category, Product.category_id == Category.id)
            .where(Product.id == product_id)
        )
        row = res.first()
        if row is None:
            raise ProductUnavailableError(product_id)
        product, category_name = row
        return build_product_view(product, category_name)

    @track_db_operation("select", "pricelist_items")
    async def get_applicable_price_rules(
        self,
        product_id: int,
        category_id: Optional[int]
    ) -> List[PriceRule]:
        scope_filter = [
            PricelistItem.product_id == product_id,
            and_(PricelistItem.product_id.is_(None), PricelistItem.category_id.is_(None)),
        ]
        if category_id is not None:
            scope_filter.append(PricelistItem.category_id == category_id)

        specificity = case(
            (PricelistItem.product_id.isnot(None), 3),
            (PricelistItem.category_id.isnot(None), 2),
            else_=1,
        )
        q = (
            select(PricelistItem, Pricelist)
            .join(Pricelist, PricelistItem.pricelist_id == Pricelist.id)
            .where(or_(*scope_filter))
            .order_by(specificity.desc(), PricelistItem.id)
        )
        res = await self.db.execute(q)
        rules = [build_price_rule(item, pricelist) for item, pricelist in res.all()]

        logger.debug(
            f"Loaded {len(rules)} candidate pricing rules for product {product_id} "
            f"(category {category_id})"
        )
        return rules
