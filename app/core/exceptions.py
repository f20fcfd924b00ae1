"""Pricing error taxonomy"""
from decimal import Decimal


class PricingError(Exception):
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidWindowError(PricingError):
    status_code = 400

    def __init__(self, start, end):
        super().__init__(f"End date must be after start date (start={start}, end={end})")
        self.start = start
        self.end = end


class ProductUnavailableError(PricingError):
    status_code = 404

    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found or not available for rental")
        self.product_id = product_id


class NoPricingRuleError(PricingError):
    """Catalog has no usable rule for the product, its category or the defaults."""

    status_code = 503

    def __init__(self, product_id, category_id=None):
        super().__init__(
            f"No pricing rules found for product {product_id} (category {category_id})"
        )
        self.product_id = product_id
        self.category_id = category_id


class PartialCoverageError(PricingError):
    status_code = 422

    def __init__(self, product_id, uncovered_hours: Decimal):
        super().__init__(
            f"Pricing rules for product {product_id} leave {uncovered_hours}h of the window unbilled"
        )
        self.product_id = product_id
        self.uncovered_hours = uncovered_hours
