from enum import Enum


class TimeUnit(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    def __str__(self):
        return self.value

    @property
    def hours(self) -> int:
        return UNIT_HOURS[self]


UNIT_HOURS = {
    TimeUnit.HOUR: 1,
    TimeUnit.DAY: 24,
    TimeUnit.WEEK: 7 * 24,
    TimeUnit.MONTH: 30 * 24,
}

# Largest unit first
UNIT_PRIORITY = (TimeUnit.MONTH, TimeUnit.WEEK, TimeUnit.DAY, TimeUnit.HOUR)


class RuleScope(str, Enum):
    PRODUCT = "product"
    CATEGORY = "category"
    DEFAULT = "default"

    def __str__(self):
        return self.value


class CoveragePolicy(str, Enum):
    ALLOW = "allow"
    REJECT = "reject"

    def __str__(self):
        return self.value
