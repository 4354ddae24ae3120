"""JSON response shapes shared by the HTTP routes and the CLI trigger.

``unreachable`` outcomes are surfaced to callers as ``no_whatsapp``; the
notification log keeps its own two-valued status.
"""
from __future__ import annotations

from app.notification.models import BatchResult, DispatchOutcome, OutcomeStatus, PreviewEntry

CALLER_STATUS: dict[OutcomeStatus, str] = {
    OutcomeStatus.SENT: "sent",
    OutcomeStatus.FAILED: "failed",
    OutcomeStatus.UNREACHABLE: "no_whatsapp",
}


def preview_payload(threshold_days: int, entries: list[PreviewEntry]) -> dict:
    return {
        "count": len(entries),
        "thresholdDays": threshold_days,
        "members": [
            {
                "membershipId": entry.candidate.membership_id,
                "memberId": entry.candidate.member_id,
                "memberName": entry.candidate.member_display_name,
                "membershipType": str(entry.candidate.membership_category),
                "endDate": entry.candidate.expiry_date.isoformat(),
                "preferredChannel": entry.candidate.preferred_channel_hint,
                "daysLeft": entry.days_remaining,
                "hasChannel": entry.has_channel,
            }
            for entry in entries
        ],
    }


def _outcome_payload(outcome: DispatchOutcome) -> dict:
    payload: dict = {
        "memberId": outcome.member_id,
        "memberName": outcome.member_display_name,
        "status": CALLER_STATUS[outcome.status],
        "daysLeft": outcome.days_remaining,
    }
    if outcome.error_detail is not None:
        payload["error"] = outcome.error_detail
    return payload


def batch_payload(result: BatchResult) -> dict:
    return {
        "success": result.overall_success,
        "batchId": result.batch_id,
        "totalMembers": result.total_candidates,
        "sent": result.sent_count,
        "failed": result.failed_count,
        "results": [_outcome_payload(outcome) for outcome in result.outcomes],
    }
