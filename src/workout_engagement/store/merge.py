"""Field-level reconciliation between the local cache and the remote store.

Rules:
- a remote field overwrites the local one only when it was mutated strictly
  more recently; ties keep the local value
- a field without its own timestamp falls back to the document's updated_at
- achievements are an ordered union (never revoked)
- coupons are a union by grant id, ordered by grant time
- achievements and coupons written before the other side's account reset
  are dropped
- longest_streak is raised to current_streak and level is recomputed
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.progress import GrantedCoupon, ProgressDocument, UserProgress
from ..rewards.levels import level_for_points


def _field_time(document: ProgressDocument, field_name: str) -> Optional[datetime]:
    return document.field_timestamps.get(field_name, document.updated_at)


def _later(timestamp: Optional[datetime], than: Optional[datetime]) -> bool:
    if timestamp is None:
        return False
    if than is None:
        return True
    return timestamp > than


def _latest(*timestamps: Optional[datetime]) -> Optional[datetime]:
    present = [ts for ts in timestamps if ts is not None]
    return max(present) if present else None


def _since_reset(values: List[Any], field_time: Optional[datetime], other: ProgressDocument) -> List[Any]:
    """Set entries, or none if the other document was reset after they were written."""
    if _later(other.reset_at, field_time):
        return []
    return values


def _merge_achievements(local: List[str], remote: List[str]) -> List[str]:
    merged = list(local)
    for achievement_id in remote:
        if achievement_id not in merged:
            merged.append(achievement_id)
    return merged


def _merge_coupons(local: List[GrantedCoupon], remote: List[GrantedCoupon]) -> List[GrantedCoupon]:
    by_grant = {coupon.grant_id: coupon for coupon in local}
    for coupon in remote:
        by_grant.setdefault(coupon.grant_id, coupon)
    return sorted(by_grant.values(), key=lambda c: c.granted_at)


_SET_MERGES = {
    "achievements": _merge_achievements,
    "coupons": _merge_coupons,
}


def merge_documents(local: ProgressDocument, remote: ProgressDocument) -> ProgressDocument:
    """
    Merge a remote document into the local one.

    Args:
        local: Document held on this device
        remote: Document read from the remote store

    Returns:
        A new document; neither input is modified
    """
    local_values = dict(local.progress)
    remote_values = dict(remote.progress)

    merged: Dict[str, Any] = {}
    timestamps: Dict[str, datetime] = {}

    for field_name in UserProgress.model_fields:
        local_ts = _field_time(local, field_name)
        remote_ts = _field_time(remote, field_name)

        union = _SET_MERGES.get(field_name)
        if union is not None:
            merged[field_name] = union(
                _since_reset(local_values[field_name], local_ts, remote),
                _since_reset(remote_values[field_name], remote_ts, local),
            )
            latest = _latest(local_ts, remote_ts)
        elif _later(remote_ts, local_ts):
            merged[field_name] = remote_values[field_name]
            latest = remote_ts
        else:
            merged[field_name] = local_values[field_name]
            latest = local_ts

        if latest is not None:
            timestamps[field_name] = latest

    merged["longest_streak"] = max(merged["longest_streak"], merged["current_streak"])
    merged["level"] = level_for_points(merged["points"])

    return ProgressDocument(
        user_id=local.user_id,
        progress=UserProgress(**merged),
        field_timestamps=timestamps,
        updated_at=_latest(local.updated_at, remote.updated_at),
        reset_at=_latest(local.reset_at, remote.reset_at),
    )
