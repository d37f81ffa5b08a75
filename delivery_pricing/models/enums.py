from enum import Enum

class TierKey(str, Enum):
    HEADCOUNT = "headcount"
    SUBTOTAL = "subtotal"
    LESSER_OF = "lesserOf"  # cheaper of the headcount tier and the food-cost tier

class RateBranch(str, Enum):
    LOCAL = "within10Miles"
    REGULAR = "regularRate"

class AdjustmentKind(str, Enum):
    TIER_CLAMPED = "TIER_CLAMPED"
    TOTAL_FLOORED = "TOTAL_FLOORED"
    DISCOUNT_CAPPED = "DISCOUNT_CAPPED"
    DRIVER_PAY_CAPPED = "DRIVER_PAY_CAPPED"

class DiscountSource(str, Enum):
    NONE = "none"
    DAILY_DRIVE = "daily_drive"
    CUSTOM_OVERRIDE = "custom_override"

class ErrorKind(str, Enum):
    CONFIGURATION = "ConfigurationError"
    INPUT = "InputError"
    MANUAL_REVIEW = "ManualReviewRequired"
