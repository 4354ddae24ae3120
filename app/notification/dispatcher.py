"""Expiry reminder batch dispatcher.

Pulls a snapshot of expiring memberships once, then for each candidate:
resolve a channel, render the reminder, send it, and append a
notification log row.  One candidate's failure (no contact address,
gateway rejection, timeout, unexpected sender exception) is recorded in
its ``DispatchOutcome`` and never stops the remaining candidates.

With ``concurrency > 1`` candidates are attempted on a bounded thread
pool.  Outcomes are slotted back by candidate index so ``outcomes[i]``
always belongs to ``candidates[i]``, and log rows are written from the
coordinating thread so the database session is never shared.

Error details are scrubbed of phone numbers and email addresses before
they reach an outcome, since provider error text is echoed to callers.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as SendTimeoutError
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

from app.audit.events import LOG_STATUS_FAILED, LOG_STATUS_SENT
from app.audit.notification_log import NotificationLogWriter
from app.core.logging import redact_contact_data
from app.notification.candidates import Clock, MembershipQueryGateway
from app.notification.contact_resolver import resolve_channel
from app.notification.errors import GatewayUnavailableError, validate_threshold
from app.notification.models import (
    BatchResult,
    Channel,
    DispatchOutcome,
    ExpiryCandidate,
    OutcomeStatus,
    PreviewEntry,
    SendResult,
    days_until,
)
from app.notification.templates import render_reminder
from app.notification.whatsapp_sender import MessageSender

logger = logging.getLogger(__name__)

UNREACHABLE_DETAIL = "no usable contact address"


@dataclass(frozen=True)
class _Attempt:
    outcome: DispatchOutcome
    channel_type: str | None
    message: str | None
    attempted_at: datetime


class ReminderDispatcher:
    """Run expiry reminder batches.

    Parameters
    ----------
    query_gateway:
        Source of ``ExpiryCandidate`` snapshots.
    sender:
        Messaging gateway used for every send.
    log_writer:
        Append-only notification log.
    clock:
        Returns today's date; days remaining are recomputed from it for
        every candidate at attempt time.
    concurrency:
        Maximum candidates attempted in parallel.  ``1`` is sequential.
    default_region:
        Region assumed for stored numbers without an international prefix.
    send_timeout_s:
        Wall-clock bound on a single send.  A send still running after this
        long is reported as a timeout failure and its worker moves on.
        ``None`` leaves timing entirely to the sender.
    """

    def __init__(
        self,
        query_gateway: MembershipQueryGateway,
        sender: MessageSender,
        log_writer: NotificationLogWriter,
        *,
        clock: Clock,
        concurrency: int = 1,
        default_region: str = "US",
        send_timeout_s: float | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        if send_timeout_s is not None and send_timeout_s <= 0:
            raise ValueError(f"send_timeout_s must be positive, got {send_timeout_s}")
        self.query_gateway = query_gateway
        self.sender = sender
        self.log_writer = log_writer
        self.clock = clock
        self.concurrency = concurrency
        self.default_region = default_region
        self.send_timeout_s = send_timeout_s

    # -- preview ------------------------------------------------------------

    def preview(self, threshold_days: int) -> list[PreviewEntry]:
        """Candidates with days remaining and reachability; sends nothing."""
        threshold_days = validate_threshold(threshold_days)
        candidates = self.query_gateway.find_expiring_memberships(threshold_days)
        today = self.clock()
        return [
            PreviewEntry(
                candidate=candidate,
                days_remaining=days_until(candidate.expiry_date, today),
                has_channel=resolve_channel(candidate, default_region=self.default_region) is not None,
            )
            for candidate in candidates
        ]

    # -- batch --------------------------------------------------------------

    def run_batch(self, threshold_days: int) -> BatchResult:
        """Dispatch reminders to every candidate within *threshold_days*.

        Raises ``InvalidThresholdError``, ``DataAccessError`` or
        ``GatewayUnavailableError`` before any send; never raises for
        individual recipients.
        """
        threshold_days = validate_threshold(threshold_days)
        candidates = self.query_gateway.find_expiring_memberships(threshold_days)
        result = BatchResult(batch_id=uuid4().hex, total_candidates=len(candidates))

        if not candidates:
            logger.info("Batch %s: no memberships expiring within %d day(s)", result.batch_id, threshold_days)
            return result

        if not self.sender.is_configured():
            raise GatewayUnavailableError("Messaging gateway is not configured; no reminders sent")

        logger.info(
            "Batch %s: dispatching %d reminder(s) with concurrency=%d",
            result.batch_id, len(candidates), self.concurrency,
        )

        outcomes: list[DispatchOutcome | None] = [None] * len(candidates)
        send_pool = None
        if self.send_timeout_s is not None:
            # One slot per candidate so an abandoned send never delays the next one;
            # live sends are still capped by the attempt workers.
            send_pool = ThreadPoolExecutor(max_workers=len(candidates), thread_name_prefix="reminder-send")
        try:
            if self.concurrency == 1 or len(candidates) == 1:
                for index, candidate in enumerate(candidates):
                    attempt = self._safe_attempt(candidate, send_pool)
                    outcomes[index] = attempt.outcome
                    self._record(attempt, result.batch_id)
            else:
                workers = min(self.concurrency, len(candidates))
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reminder") as pool:
                    futures = {
                        pool.submit(self._safe_attempt, candidate, send_pool): index
                        for index, candidate in enumerate(candidates)
                    }
                    for future in as_completed(futures):
                        attempt = future.result()
                        outcomes[futures[future]] = attempt.outcome
                        self._record(attempt, result.batch_id)
        finally:
            if send_pool is not None:
                # Sends past their deadline are abandoned, not awaited.
                send_pool.shutdown(wait=False, cancel_futures=True)

        result.outcomes = [outcome for outcome in outcomes if outcome is not None]
        result.sent_count = sum(1 for o in result.outcomes if o.status is OutcomeStatus.SENT)
        result.failed_count = len(result.outcomes) - result.sent_count

        logger.info(
            "Batch %s complete: total=%d sent=%d failed=%d",
            result.batch_id, result.total_candidates, result.sent_count, result.failed_count,
        )
        return result

    # -- per candidate ------------------------------------------------------

    def _safe_attempt(
        self, candidate: ExpiryCandidate, send_pool: ThreadPoolExecutor | None = None
    ) -> _Attempt:
        try:
            return self._attempt(candidate, send_pool)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error dispatching membership %s", candidate.membership_id)
            return _Attempt(
                outcome=self._outcome(
                    candidate, OutcomeStatus.FAILED, candidate.days_remaining, f"unexpected error: {exc}"
                ),
                channel_type=None,
                message=None,
                attempted_at=datetime.now(timezone.utc),
            )

    def _attempt(
        self, candidate: ExpiryCandidate, send_pool: ThreadPoolExecutor | None = None
    ) -> _Attempt:
        channel = resolve_channel(candidate, default_region=self.default_region)
        if channel is None:
            return _Attempt(
                outcome=self._outcome(
                    candidate, OutcomeStatus.UNREACHABLE, candidate.days_remaining, UNREACHABLE_DETAIL
                ),
                channel_type=None,
                message=None,
                attempted_at=datetime.now(timezone.utc),
            )

        days_remaining = days_until(candidate.expiry_date, self.clock())
        message = render_reminder(
            candidate.member_display_name, candidate.membership_category, days_remaining
        )

        try:
            send_result = self._send(channel, message, send_pool)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Sender raised for membership %s: %s", candidate.membership_id, exc.__class__.__name__
            )
            send_result = SendResult(success=False, error=f"gateway error: {exc}")
        attempted_at = datetime.now(timezone.utc)

        if send_result.success:
            outcome = self._outcome(candidate, OutcomeStatus.SENT, days_remaining)
        else:
            outcome = self._outcome(
                candidate, OutcomeStatus.FAILED, days_remaining, send_result.error or "unknown gateway error"
            )
        return _Attempt(
            outcome=outcome,
            channel_type=str(channel.channel_type),
            message=message,
            attempted_at=attempted_at,
        )

    def _send(self, channel: Channel, message: str, send_pool: ThreadPoolExecutor | None) -> SendResult:
        if send_pool is None:
            return self.sender.send(channel, message)
        future = send_pool.submit(self.sender.send, channel, message)
        try:
            return future.result(timeout=self.send_timeout_s)
        except SendTimeoutError:
            future.cancel()
            return SendResult(
                success=False, error=f"timeout: no gateway response within {self.send_timeout_s}s"
            )

    @staticmethod
    def _outcome(
        candidate: ExpiryCandidate,
        status: OutcomeStatus,
        days_remaining: int,
        error_detail: str | None = None,
    ) -> DispatchOutcome:
        return DispatchOutcome(
            membership_id=candidate.membership_id,
            member_id=candidate.member_id,
            member_display_name=candidate.member_display_name,
            status=status,
            days_remaining=days_remaining,
            error_detail=(
                redact_contact_data(error_detail)
                if error_detail is not None and status is not OutcomeStatus.SENT
                else None
            ),
        )

    def _record(self, attempt: _Attempt, batch_id: str) -> None:
        outcome = attempt.outcome
        status = LOG_STATUS_SENT if outcome.status is OutcomeStatus.SENT else LOG_STATUS_FAILED
        self.log_writer.record(
            outcome.membership_id,
            attempt.channel_type,
            attempt.message,
            status,
            attempt.attempted_at,
            member_id=outcome.member_id,
            batch_id=batch_id,
            error_detail=outcome.error_detail,
        )
