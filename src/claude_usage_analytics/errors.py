"""Exception types raised by the analytics core."""


class AnalyticsError(Exception):
    """Base class for all claude_usage_analytics errors."""


class PricingFetchError(AnalyticsError):
    """The remote price list could not be fetched or decoded."""


class DataRootError(AnalyticsError):
    """The Claude data directory cannot be located or created.

    This is the only fatal error: without a data root there is nothing to scan.
    """
