"""
Counter maintenance for the stats/campaigns document.

Two paths write the same document:

* apply_change() turns one record's before/after snapshots into deltas and
  applies them with a single $inc. Events are delivered at least once, so a
  replayed event is applied twice; that drift is left for reconciliation.
* recompute_counters() scans every record and overwrites the counters. It runs
  nightly from Celery beat and on demand from the admin endpoint.

Neither path writes to the campaigns collection.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from campaign_stats.counters import CampaignSource, CountersSnapshot, CountersStore
from campaign_stats.errors import RecomputeError
from campaign_stats.records import NUMERIC_FIELDS, CampaignSnapshot, Number, coerce_number
from campaign_stats.status import STATUSES, snapshot_status

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_delta(
    before: Optional[CampaignSnapshot],
    after: Optional[CampaignSnapshot],
    now: datetime,
) -> Dict[str, Number]:
    """
    Counter deltas for a single change event. Zero entries are omitted.
    """
    delta: Dict[str, Number] = {}

    if before is None and after is None:
        return delta

    if before is None:
        delta["total"] = 1
    elif after is None:
        delta["total"] = -1

    for field in NUMERIC_FIELDS:
        old = coerce_number(getattr(before, field, 0)) if before is not None else 0
        new = coerce_number(getattr(after, field, 0)) if after is not None else 0
        if new - old != 0:
            delta[field] = new - old

    old_status = snapshot_status(before, now) if before is not None else None
    new_status = snapshot_status(after, now) if after is not None else None
    if old_status != new_status:
        if old_status is not None:
            delta[old_status] = delta.get(old_status, 0) - 1
        if new_status is not None:
            delta[new_status] = delta.get(new_status, 0) + 1

    return delta


async def apply_change(
    store: CountersStore,
    before: Optional[CampaignSnapshot],
    after: Optional[CampaignSnapshot],
    now: Optional[datetime] = None,
) -> Dict[str, Number]:
    """
    Apply one change event to the counters document and return the deltas written.
    """
    if before is None and after is None:
        logger.debug("Ignoring change event with neither side present")
        return {}

    now = now or _utcnow()
    delta = compute_delta(before, after, now)
    await store.increment(delta, updated_at=now)

    kind = "create" if before is None else "delete" if after is None else "update"
    logger.info(f"Applied {kind} delta to campaign counters: {delta}")
    return delta


def _empty_counters() -> Dict[str, Number]:
    counters: Dict[str, Number] = {"total": 0}
    counters.update({status: 0 for status in STATUSES})
    counters.update({field: 0 for field in NUMERIC_FIELDS})
    return counters


async def _count_total(source: CampaignSource) -> Optional[int]:
    """Server-side count, or None when the primitive is unavailable."""
    try:
        return await source.count()
    except Exception as e:
        logger.warning(f"Count primitive failed, falling back to scan count: {e}")
        return None


async def tally_records(source: CampaignSource, now: datetime) -> Dict[str, Number]:
    """Scan every campaign and compute exact counter values in memory."""
    counters = _empty_counters()
    scanned = 0
    try:
        async for document in source.scan():
            snapshot = CampaignSnapshot.from_document(document)
            scanned += 1
            counters[snapshot_status(snapshot, now)] += 1
            for field in NUMERIC_FIELDS:
                counters[field] += getattr(snapshot, field)
    except Exception as e:
        raise RecomputeError(f"Campaign scan failed after {scanned} records: {e}") from e

    counters["total"] = scanned
    return counters


async def recompute_counters(
    source: CampaignSource,
    store: CountersStore,
    now: Optional[datetime] = None,
) -> CountersSnapshot:
    """
    Rebuild the counters document from a full scan of the campaigns.

    The document is written once, after every read has succeeded, so a failed
    scan leaves the previous counters in place.
    """
    now = now or _utcnow()
    logger.info("=== CAMPAIGN COUNTERS RECOMPUTE STARTED ===")

    total = await _count_total(source)
    counters = await tally_records(source, now)
    if total is not None and total != counters["total"]:
        # `total` follows the scan so it matches the status buckets
        logger.info(f"Count primitive returned {total}, scan saw {counters['total']}; records changed mid-scan")

    await store.replace(counters, updated_at=now)

    logger.info(f"Counters recomputed: {counters}")
    logger.info("=== CAMPAIGN COUNTERS RECOMPUTE COMPLETED ===")
    return CountersSnapshot(**counters, updated_at=now)

