"""Exceptions raised by the traffic estimation engine."""


class TrafficEngineError(Exception):
    """Base class for engine errors."""


class GeographyError(TrafficEngineError):
    """The geography collaborator failed. Never degraded, always propagated."""


class BrandedTrafficError(TrafficEngineError):
    """Keyword-volume or SERP lookup failed while estimating branded traffic."""


class BrandedTrafficConfigError(BrandedTrafficError):
    """Branded traffic services are not configured."""
