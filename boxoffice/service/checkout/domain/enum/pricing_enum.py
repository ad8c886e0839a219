from enum import StrEnum


class FeeModel(StrEnum):
    ABSORBED = 'absorbed'
    PASSED_THROUGH = 'passed_through'


class DiscountType(StrEnum):
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'
