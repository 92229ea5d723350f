class CampaignStatsError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "internal"


class Unauthenticated(CampaignStatsError):
    code = "unauthenticated"


class PermissionDenied(CampaignStatsError):
    code = "permission-denied"


class NotFound(CampaignStatsError):
    code = "not-found"


class InvalidArgument(CampaignStatsError):
    code = "invalid-argument"


class RecomputeError(CampaignStatsError):
    """Raised when a full recompute cannot read the record set."""

    code = "unavailable"
