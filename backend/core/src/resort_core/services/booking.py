"""Booking orchestration: create, cancel, modify and move bookings through their lifecycle.

``BookingService`` composes the pure pieces (availability, pricing,
cancellation policy, state machine, credit planning) with the side
effects (DynamoDB, Stripe, notification outbox).

Every state change is committed in a single DynamoDB transaction:
- the booking record, guarded by its ``version``
- the slot locks or ticket counters of the affected dates
- credit consumption or credit grants

Payments are handled around that commit:
- create: the PaymentIntent is created before the commit and cancelled
  if the commit loses a race
- cancel/modify: refunds are issued after the commit and are best-effort;
  a failed refund is recorded on the booking for reconciliation
"""

import datetime as dt
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from resort_core.config import BookingSettings, get_settings
from resort_core.models import (
    Booking,
    BookingCreate,
    BookingCreated,
    BookingKind,
    BookingStatus,
    CancellationResult,
    CreditBalance,
    CreditDraw,
    CreditType,
    DatesUnavailable,
    DownstreamFailure,
    ErrorCode,
    InvalidStatus,
    ModificationResult,
    NotFoundError,
    NotificationEventType,
    PaymentIntent,
    PaymentStatus,
    PriceCalculation,
    RefundStatus,
    Requester,
    Resource,
    ResourceKind,
    Unauthorized,
    ValidationError,
)
from resort_core.models.errors import get_user_friendly_stripe_message, is_stripe_error_retryable
from resort_core.utils.logging import get_logger, log_booking_operation, log_payment_operation

from .availability import AvailabilityService
from .booking_state import (
    assert_bookkeeping_update,
    assert_cancellable,
    assert_modifiable,
    assert_transition,
)
from .cancellation_policy import CancellationPolicyService
from .credits import CreditService, plan_credit_application
from .dynamodb import to_item, to_model
from .pricing import calculate_price, calculate_ticket_price, percentage_of
from .stripe_service import StripeServiceError

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService
    from .modules import ModuleStatusService
    from .notification_service import NotificationService
    from .resources import ResourceService
    from .stripe_service import StripeService

logger = get_logger(__name__)

# Widest window accepted by get_blocked_dates
MAX_CALENDAR_DAYS = 366


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def generate_booking_id() -> str:
    """Opaque booking ID, e.g. ``BK-1A2B3C4D5E6F``."""
    return f"BK-{uuid.uuid4().hex[:12].upper()}"


def generate_booking_number(kind: BookingKind, year: int) -> str:
    """Human readable number, ``CH-2026-1A2B3C4D`` or ``PT-2026-1A2B3C4D``."""
    prefix = "PT" if kind == BookingKind.POOL_TICKET else "CH"
    return f"{prefix}-{year}-{uuid.uuid4().hex[:8].upper()}"


class BookingService:
    """Service for the booking lifecycle."""

    TABLE = "bookings"
    CUSTOMER_INDEX = "customer_id-index"

    def __init__(
        self,
        db: "DynamoDBService",
        resources: "ResourceService",
        stripe: "StripeService",
        notifications: "NotificationService",
        *,
        availability: AvailabilityService | None = None,
        credits: CreditService | None = None,
        modules: "ModuleStatusService | None" = None,
        settings: BookingSettings | None = None,
        now_fn: Callable[[], dt.datetime] = _utc_now,
    ) -> None:
        """Initialize booking service.

        Args:
            db: DynamoDB service instance
            resources: Chalet/pool session lookups
            stripe: Payment provider
            notifications: Notification outbox
            availability: Slot lock service (default: built on ``db``)
            credits: User credit service (default: built on ``db``)
            modules: Module switches; None disables the check
            settings: Booking rules (default: from environment)
            now_fn: Clock, injectable for tests
        """
        self.db = db
        self.resources = resources
        self.stripe = stripe
        self.notifications = notifications
        self.availability = availability or AvailabilityService(db)
        self.credits = credits or CreditService(db)
        self.modules = modules
        self.settings = settings or get_settings()
        self.policies = CancellationPolicyService(
            self.settings.chalet_tiers, self.settings.pool_tiers
        )
        self._now = now_fn

    # =========================================================================
    # Reads
    # =========================================================================

    def get_booking(self, booking_id: str, requester: Requester) -> Booking:
        """Get a booking the requester is allowed to see.

        Raises:
            NotFoundError: If the booking does not exist
            Unauthorized: If the requester is neither owner nor staff
        """
        booking = self._load(booking_id)
        self._authorize(booking, requester)
        return booking

    def list_customer_bookings(self, requester: Requester) -> list[Booking]:
        """Bookings owned by the requester, newest check-in first."""
        if requester.user_id is None:
            raise Unauthorized()

        items = self.db.query_by_gsi(
            table=self.TABLE,
            index_name=self.CUSTOMER_INDEX,
            partition_key_name="customer_id",
            partition_key_value=requester.user_id,
        )
        bookings = [to_model(Booking, item) for item in items]
        return sorted(bookings, key=lambda b: b.check_in, reverse=True)

    def get_blocked_dates(
        self,
        resource_id: str,
        start_date: dt.date,
        end_date: dt.date,
    ) -> list[dt.date]:
        """Dates in ``[start_date, end_date)`` that cannot be booked.

        Raises:
            ValidationError: If the range is empty or too wide
            NotFoundError: If the resource does not exist
        """
        if end_date <= start_date:
            raise ValidationError(ErrorCode.INVALID_DATE_RANGE)
        if (end_date - start_date).days > MAX_CALENDAR_DAYS:
            raise ValidationError(
                ErrorCode.INVALID_INPUT,
                details={"reason": f"Range must not exceed {MAX_CALENDAR_DAYS} days"},
            )

        resource = self._get_resource(resource_id)
        return self.availability.get_blocked_dates(resource, start_date, end_date)

    def get_user_credits(self, requester: Requester) -> CreditBalance:
        """Usable credits of the requester."""
        if requester.user_id is None:
            raise Unauthorized()
        return self.credits.get_user_credits(requester.user_id, self._now())

    # =========================================================================
    # Create
    # =========================================================================

    def create_booking(self, data: BookingCreate, requester: Requester) -> BookingCreated:
        """Create a pending booking and its payment intent.

        Args:
            data: Booking request
            requester: Caller; guests (no user ID) create unowned bookings

        Returns:
            BookingCreated with the booking and the PaymentIntent (None when
            credits cover the whole price)

        Raises:
            ValidationError: Bad guests, dates or inactive resource
            NotFoundError: Unknown resource
            ModuleDisabled: Bookings for the resource's module are off
            DatesUnavailable: Dates taken (pre-check or lost race at commit)
            DownstreamFailure: Payment provider error; nothing is persisted
        """
        resource = self._get_resource(data.resource_id)
        check_in, check_out = self._validate_request(resource, data.check_in, data.check_out)
        self._validate_guests(data.number_of_guests, resource)
        if not resource.is_active:
            raise ValidationError(
                ErrorCode.RESOURCE_INACTIVE, details={"resource_id": resource.resource_id}
            )
        if self.modules is not None:
            self.modules.require_enabled(resource.kind.module_slug)

        self._ensure_available(resource, check_in, check_out, data.number_of_guests)
        price = self._price(resource, check_in, check_out, data.number_of_guests)

        now = self._now()
        booking_id = generate_booking_id()
        kind = resource.kind.booking_kind

        draws: list[CreditDraw] = []
        if data.use_credit and requester.user_id is not None:
            balance = self.credits.get_user_credits(requester.user_id, now)
            draws = plan_credit_application(balance.credits, price.total, now)
        credit_applied = sum(d.amount for d in draws)
        amount_due = price.total - credit_applied

        payment_intent: PaymentIntent | None = None
        if amount_due > 0:
            payment_intent = self._create_payment_intent(booking_id, amount_due, data)

        booking = Booking(
            booking_id=booking_id,
            booking_number=generate_booking_number(kind, check_in.year),
            kind=kind,
            resource_id=resource.resource_id,
            customer_id=requester.user_id,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            check_in=check_in,
            check_out=check_out,
            number_of_guests=data.number_of_guests,
            nights=price.nights,
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING if amount_due > 0 else PaymentStatus.PAID,
            subtotal=price.subtotal,
            weekend_markup=price.weekend_markup,
            total_price=price.total,
            credit_applied=credit_applied,
            amount_due=amount_due,
            payment_intent_id=payment_intent.payment_intent_id if payment_intent else None,
            special_requests=data.special_requests,
            created_at=now,
            updated_at=now,
        )

        transact_items = [
            self.db.put_tx(
                self.TABLE,
                to_item(booking),
                condition_expression="attribute_not_exists(booking_id)",
            )
        ]
        transact_items += self.availability.reserve_tx(
            resource, check_in, check_out, booking_id, data.number_of_guests, now
        )
        transact_items += [self.credits.draw_tx(d, now) for d in draws]

        if not self.db.transact_write(transact_items):
            # Another booking claimed a slot (or spent the same credit) first
            if payment_intent is not None:
                self._cancel_payment_intent(payment_intent.payment_intent_id, booking_id)
            log_booking_operation(
                logger,
                "create_booking",
                booking_id=booking_id,
                resource_id=resource.resource_id,
                error="booking_conflict",
            )
            raise DatesUnavailable(details={"reason": "booking_conflict"})

        log_booking_operation(
            logger,
            "create_booking",
            booking_id=booking_id,
            resource_id=resource.resource_id,
            status=booking.status.value,
            total_price=booking.total_price,
            credit_applied=credit_applied,
        )
        self.notifications.enqueue(
            NotificationEventType.BOOKING_CREATED, booking, currency=self.settings.currency
        )
        return BookingCreated(booking=booking, payment_intent=payment_intent)

    # =========================================================================
    # Cancel
    # =========================================================================

    def cancel_booking(
        self,
        booking_id: str,
        requester: Requester,
        reason: str | None = None,
    ) -> CancellationResult:
        """Cancel a booking and compensate per the cancellation policy.

        The policy applies to what the customer put into the booking, card
        payment plus applied credit. The credit-funded share of the refund
        goes back to the account as a new credit; the rest is refunded to
        the card, never more than was captured.

        The cancellation, slot release and any credit grant are committed
        first. The cash refund is then requested from Stripe; if that fails
        the booking stays cancelled with ``refund_status=failed``. An unpaid
        PaymentIntent is cancelled so it can no longer be paid.

        Raises:
            NotFoundError: If the booking does not exist
            Unauthorized: If the requester is neither owner nor staff
            InvalidStatus: If the booking is checked in or already final
            ValidationError: If a pool ticket's day has already passed
        """
        booking = self._load(booking_id)
        self._authorize(booking, requester)
        assert_cancellable(booking.status)

        now = self._now()
        if booking.kind == BookingKind.POOL_TICKET and booking.check_in < now.date():
            raise ValidationError(
                ErrorCode.INVALID_DATE_RANGE,
                details={"reason": "Cannot cancel a ticket for a past date"},
            )

        quote = self.policies.quote(
            booking.kind, booking.check_in, booking.amount_paid + booking.credit_applied, now
        )
        policy = quote["policy"]
        credit_restored = percentage_of(booking.credit_applied, policy.refund_percentage)
        refund_amount = min(quote["refund_amount"] - credit_restored, booking.amount_paid)
        credit_amount = quote["credit_amount"] + credit_restored

        credit = None
        if credit_amount > 0 and booking.customer_id is not None:
            credit = self.credits.build_credit(
                user_id=booking.customer_id,
                amount=credit_amount,
                credit_type=self._credit_type(booking.kind),
                source_booking_id=booking.booking_id,
                now=now,
                valid_days=self._credit_days(booking.kind),
            )
        elif credit_amount > 0:
            # Guest bookings have no account to hold credit
            credit_amount = 0

        # Recorded as failed until Stripe acknowledges the refund
        refund_status = RefundStatus.FAILED if refund_amount > 0 else RefundStatus.NOT_REQUIRED

        cancelled = self._next_version(
            booking,
            now,
            status=BookingStatus.CANCELLED,
            payment_status=self._payment_status_after_cancel(booking, 0, credit_restored),
            refund_amount=refund_amount,
            credit_issued=credit_amount,
            refund_status=refund_status,
            cancellation_reason=reason,
            cancelled_at=now,
        )

        transact_items = [self._save_tx(cancelled, booking.version)]
        transact_items += self.availability.release_tx(booking)
        if credit is not None:
            transact_items.append(self.credits.grant_tx(credit))

        if not self.db.transact_write(transact_items):
            raise InvalidStatus(ErrorCode.CONCURRENT_MODIFICATION, details={"booking_id": booking_id})

        log_booking_operation(
            logger,
            "cancel_booking",
            booking_id=booking_id,
            resource_id=booking.resource_id,
            status=cancelled.status.value,
            refund_amount=refund_amount,
            credit_amount=credit_amount,
            credit_restored=credit_restored,
            days_until_check_in=quote["days_until_check_in"],
        )

        if booking.payment_status == PaymentStatus.PENDING and booking.payment_intent_id:
            self._cancel_payment_intent(booking.payment_intent_id, booking_id)

        if refund_amount > 0:
            refund_status = self._issue_refund(
                cancelled,
                refund_amount,
                reason=reason or "booking_cancelled",
                idempotency_key=f"refund_{booking_id}_{cancelled.version}",
            )
            if refund_status == RefundStatus.SUCCEEDED:
                cancelled = self._record_refund_success(
                    cancelled,
                    payment_status=self._payment_status_after_cancel(
                        booking, refund_amount, credit_restored
                    ),
                )

        self.notifications.enqueue(
            NotificationEventType.BOOKING_CANCELLED,
            cancelled,
            refund_amount=refund_amount,
            credit_amount=credit_amount,
            currency=self.settings.currency,
        )

        return CancellationResult(
            message=quote["description"],
            booking=cancelled,
            refund_type=policy.refund_type,
            refund_percentage=policy.refund_percentage,
            days_until_check_in=quote["days_until_check_in"],
            refund_amount=refund_amount,
            credit_amount=credit_amount,
            refund_status=refund_status,
        )

    # =========================================================================
    # Modify
    # =========================================================================

    def modify_booking_dates(
        self,
        booking_id: str,
        requester: Requester,
        new_check_in: dt.date,
        new_check_out: dt.date | None = None,
    ) -> ModificationResult:
        """Move a pending or confirmed booking to new dates.

        A higher price sets ``new_payment_required`` and adds the difference
        to ``balance_due``. A lower price first reduces any outstanding
        balance, then refunds the rest of the difference if the booking was
        paid.

        A booking still awaiting payment has its PaymentIntent repriced
        instead of accruing a balance; the intent is cancelled when credits
        now cover the whole price.

        Raises:
            NotFoundError: If the booking does not exist
            Unauthorized: If the requester is neither owner nor staff
            InvalidStatus: If the booking is not pending or confirmed
            ValidationError: Bad or unchanged dates
            DatesUnavailable: New dates taken
            DownstreamFailure: The unpaid intent could not be repriced
        """
        booking = self._load(booking_id)
        self._authorize(booking, requester)
        assert_modifiable(booking.status)

        resource = self._get_resource(booking.resource_id)
        check_in, check_out = self._validate_request(resource, new_check_in, new_check_out)
        if (check_in, check_out) == (booking.check_in, booking.check_out):
            raise ValidationError(
                ErrorCode.INVALID_INPUT, details={"reason": "New dates match the current dates"}
            )

        self._ensure_available(
            resource, check_in, check_out, booking.number_of_guests, exclude=booking
        )
        price = self._price(resource, check_in, check_out, booking.number_of_guests)
        delta = price.total - booking.total_price
        amount_due = max(price.total - booking.credit_applied, 0)
        awaiting_payment = (
            booking.payment_status == PaymentStatus.PENDING
            and booking.payment_intent_id is not None
        )

        balance_due = booking.balance_due
        refundable = 0
        if delta > 0 and not awaiting_payment:
            balance_due += delta
        elif delta < 0:
            reduction = -delta
            absorbed = min(balance_due, reduction)
            balance_due -= absorbed
            if booking.payment_status in (PaymentStatus.PAID, PaymentStatus.PARTIALLY_REFUNDED):
                refundable = min(reduction - absorbed, booking.amount_paid)

        # The unpaid intent follows the new price; credits may now cover all of it
        payment_intent: PaymentIntent | None = None
        payment_changes: dict[str, Any] = {}
        if awaiting_payment and amount_due != booking.amount_due:
            if amount_due > 0:
                payment_intent = self._reprice_payment_intent(booking, amount_due)
            else:
                payment_changes = {"payment_status": PaymentStatus.PAID, "payment_intent_id": None}

        now = self._now()
        modified = self._next_version(
            booking,
            now,
            check_in=check_in,
            check_out=check_out,
            nights=price.nights,
            subtotal=price.subtotal,
            weekend_markup=price.weekend_markup,
            total_price=price.total,
            amount_due=amount_due,
            balance_due=balance_due,
            **payment_changes,
        )

        transact_items = [self._save_tx(modified, booking.version)]
        transact_items += self.availability.move_tx(resource, booking, check_in, check_out, now)

        if not self.db.transact_write(transact_items):
            if payment_intent is not None:
                self._restore_payment_intent(booking)
            current = self._load(booking_id)
            if current.version != booking.version:
                raise InvalidStatus(
                    ErrorCode.CONCURRENT_MODIFICATION, details={"booking_id": booking_id}
                )
            raise DatesUnavailable(details={"reason": "booking_conflict"})

        if payment_changes:
            self._cancel_payment_intent(booking.payment_intent_id, booking_id)

        log_booking_operation(
            logger,
            "modify_booking_dates",
            booking_id=booking_id,
            resource_id=booking.resource_id,
            status=modified.status.value,
            price_difference=delta,
        )

        refund_status = RefundStatus.NOT_REQUIRED
        if refundable > 0:
            refund_status = self._issue_refund(
                modified,
                refundable,
                reason="booking_dates_changed",
                idempotency_key=f"modify_{booking_id}_{modified.version}",
            )
            if refund_status == RefundStatus.SUCCEEDED:
                modified = self._record_partial_refund(modified, refundable)

        self.notifications.enqueue(
            NotificationEventType.BOOKING_MODIFIED,
            modified,
            price_difference=delta,
            currency=self.settings.currency,
        )

        if delta > 0:
            message = f"Dates changed. Additional payment of {delta} cents required."
        elif delta < 0:
            message = f"Dates changed. Price reduced by {-delta} cents."
        else:
            message = "Dates changed. Price unchanged."

        return ModificationResult(
            message=message,
            booking=modified,
            price_difference=delta,
            new_payment_required=delta > 0,
            refund_amount=refundable if refund_status == RefundStatus.SUCCEEDED else 0,
            refund_status=refund_status,
            payment_intent=payment_intent,
        )

    # =========================================================================
    # Lifecycle transitions
    # =========================================================================

    def confirm_booking(
        self,
        booking_id: str,
        *,
        amount_paid: int | None = None,
        payment_intent_id: str | None = None,
        requester: Requester | None = None,
    ) -> Booking:
        """Mark a pending booking as paid and confirmed.

        Called by the Stripe webhook (no requester) or by staff for cash
        payments. Confirming an already confirmed booking is a no-op.

        Args:
            booking_id: Booking to confirm
            amount_paid: Captured amount in cents (default: ``amount_due``)
            payment_intent_id: PaymentIntent that captured the payment
            requester: Staff member, when confirmed by hand

        Raises:
            Unauthorized: If a non-staff requester is given
            InvalidTransition: If the booking is not pending
        """
        if requester is not None and not requester.is_staff:
            raise Unauthorized()

        booking = self._load(booking_id)
        if booking.status == BookingStatus.CONFIRMED:
            return booking
        assert_transition(booking.status, BookingStatus.CONFIRMED)

        paid = booking.amount_due if amount_paid is None else amount_paid
        confirmed = self._next_version(
            booking,
            self._now(),
            status=BookingStatus.CONFIRMED,
            payment_status=PaymentStatus.PAID,
            amount_paid=paid,
            payment_intent_id=payment_intent_id or booking.payment_intent_id,
        )
        self._save(confirmed, booking.version)

        log_booking_operation(
            logger,
            "confirm_booking",
            booking_id=booking_id,
            status=confirmed.status.value,
            amount_paid=paid,
        )
        self.notifications.enqueue(
            NotificationEventType.BOOKING_CONFIRMED, confirmed, currency=self.settings.currency
        )
        return confirmed

    def check_in(self, booking_id: str, staff: Requester) -> Booking:
        """Staff check-in of a confirmed booking."""
        return self._staff_transition(
            booking_id,
            staff,
            BookingStatus.CHECKED_IN,
            "check_in",
            lambda now: {"checked_in_at": now, "checked_in_by": staff.user_id},
        )

    def check_out(self, booking_id: str, staff: Requester) -> Booking:
        """Staff check-out of a checked-in booking."""
        return self._staff_transition(
            booking_id,
            staff,
            BookingStatus.CHECKED_OUT,
            "check_out",
            lambda now: {"checked_out_at": now, "checked_out_by": staff.user_id},
        )

    def mark_no_show(self, booking_id: str, staff: Requester) -> Booking:
        """Staff marks a confirmed booking whose guest never arrived.

        The reserved dates stay locked and no refund is issued.
        """
        return self._staff_transition(
            booking_id, staff, BookingStatus.NO_SHOW, "mark_no_show", lambda now: {}
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _staff_transition(
        self,
        booking_id: str,
        staff: Requester,
        target: BookingStatus,
        operation: str,
        extra: Callable[[dt.datetime], dict[str, Any]],
    ) -> Booking:
        if not staff.is_staff:
            raise Unauthorized()

        booking = self._load(booking_id)
        assert_transition(booking.status, target)

        now = self._now()
        updated = self._next_version(booking, now, status=target, **extra(now))
        self._save(updated, booking.version)

        log_booking_operation(
            logger, operation, booking_id=booking_id, status=target.value, staff_id=staff.user_id
        )
        return updated

    def _load(self, booking_id: str) -> Booking:
        item = self.db.get_item(self.TABLE, {"booking_id": booking_id}, consistent_read=True)
        if not item:
            raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND, details={"booking_id": booking_id})
        return to_model(Booking, item)

    def _get_resource(self, resource_id: str) -> Resource:
        resource = self.resources.get_resource(resource_id)
        if resource is None:
            raise NotFoundError(ErrorCode.RESOURCE_NOT_FOUND, details={"resource_id": resource_id})
        return resource

    def _authorize(self, booking: Booking, requester: Requester) -> None:
        """Owner or staff. Guest bookings are staff-only."""
        if requester.is_staff:
            return
        if requester.user_id is not None and requester.user_id == booking.customer_id:
            return
        raise Unauthorized(details={"booking_id": booking.booking_id})

    def _validate_request(
        self,
        resource: Resource,
        check_in: dt.date,
        check_out: dt.date | None,
    ) -> tuple[dt.date, dt.date]:
        """Normalize and validate the requested dates.

        Pool tickets cover a single day; chalet stays need a check-out
        after check-in and at most ``max_nights`` nights.
        """
        today = self._now().date()
        if check_in < today:
            raise ValidationError(
                ErrorCode.INVALID_DATE_RANGE, details={"reason": "Check-in date is in the past"}
            )

        if resource.kind == ResourceKind.POOL_SESSION:
            ticket_end = check_in + dt.timedelta(days=1)
            if check_out is not None and check_out != ticket_end:
                raise ValidationError(
                    ErrorCode.INVALID_DATE_RANGE,
                    details={"reason": "Pool tickets cover a single day"},
                )
            return check_in, ticket_end

        if check_out is None or check_out <= check_in:
            raise ValidationError(ErrorCode.INVALID_DATE_RANGE)

        nights = (check_out - check_in).days
        if nights > self.settings.max_nights:
            raise ValidationError(
                ErrorCode.STAY_TOO_LONG,
                details={"nights": str(nights), "max_nights": str(self.settings.max_nights)},
            )
        return check_in, check_out

    def _validate_guests(self, guests: int, resource: Resource) -> None:
        """Guest count within the global limit and the resource capacity.

        For pool sessions the capacity is the daily ticket count, so a
        single booking can never take more than a whole day.
        """
        if guests < 1:
            raise ValidationError(
                ErrorCode.INVALID_INPUT, details={"field": "number_of_guests"}
            )
        limit = min(self.settings.max_guests, resource.capacity)
        if guests > limit:
            raise ValidationError(
                ErrorCode.MAX_GUESTS_EXCEEDED,
                details={"number_of_guests": str(guests), "max_guests": str(limit)},
            )

    def _ensure_available(
        self,
        resource: Resource,
        check_in: dt.date,
        check_out: dt.date,
        guests: int,
        exclude: Booking | None = None,
    ) -> None:
        """Early availability check against current data.

        The transaction at commit time remains the authority; this only
        gives a clean error without touching the payment provider.
        """
        if resource.kind == ResourceKind.POOL_SESSION:
            if exclude is not None and exclude.check_in == check_in:
                return
            if not self.availability.has_ticket_capacity(resource, check_in, guests):
                raise DatesUnavailable(details={"date": check_in.isoformat(), "reason": "sold_out"})
            return

        conflicts = self.availability.find_conflicts(
            resource.resource_id,
            check_in,
            check_out,
            exclude_booking_id=exclude.booking_id if exclude else None,
        )
        if conflicts:
            raise DatesUnavailable(
                details={"conflicting_bookings": ",".join(b.booking_number for b in conflicts)}
            )

    def _price(
        self,
        resource: Resource,
        check_in: dt.date,
        check_out: dt.date,
        guests: int,
    ) -> PriceCalculation:
        weekend_days = self.settings.weekend_days
        if resource.kind == ResourceKind.POOL_SESSION:
            return calculate_ticket_price(resource, check_in, guests, weekend_days)
        return calculate_price(resource, check_in, check_out, weekend_days)

    def _credit_type(self, kind: BookingKind) -> CreditType:
        if kind == BookingKind.POOL_TICKET:
            return CreditType.POOL_TICKET_CREDIT
        return CreditType.CANCELLATION_CREDIT

    def _credit_days(self, kind: BookingKind) -> int:
        if kind == BookingKind.POOL_TICKET:
            return self.settings.pool_credit_days
        return self.settings.cancellation_credit_days

    @staticmethod
    def _payment_status_after_cancel(
        booking: Booking, refunded: int, credit_restored: int
    ) -> PaymentStatus:
        """Payment status once ``refunded`` cash and ``credit_restored`` are returned."""
        paid_value = booking.amount_paid + booking.credit_applied
        if paid_value == 0:
            return PaymentStatus.UNPAID
        returned = refunded + credit_restored
        if returned >= paid_value:
            return PaymentStatus.REFUNDED
        if returned > 0:
            return PaymentStatus.PARTIALLY_REFUNDED
        return booking.payment_status

    @staticmethod
    def _next_version(booking: Booking, now: dt.datetime, **changes: Any) -> Booking:
        return booking.model_copy(
            update={**changes, "version": booking.version + 1, "updated_at": now}
        )

    def _save_tx(self, booking: Booking, expected_version: int) -> dict[str, Any]:
        return self.db.put_tx(
            self.TABLE,
            to_item(booking),
            condition_expression="version = :expected",
            expression_attribute_values={":expected": expected_version},
        )

    def _save(self, booking: Booking, expected_version: int) -> None:
        saved = self.db.put_item(
            self.TABLE,
            to_item(booking),
            condition_expression="version = :expected",
            expression_attribute_values={":expected": expected_version},
        )
        if not saved:
            raise InvalidStatus(
                ErrorCode.CONCURRENT_MODIFICATION, details={"booking_id": booking.booking_id}
            )

    def _create_payment_intent(
        self,
        booking_id: str,
        amount: int,
        data: BookingCreate,
    ) -> PaymentIntent:
        try:
            intent = self.stripe.create_payment_intent(
                booking_id=booking_id,
                amount_cents=amount,
                currency=self.settings.currency,
                customer_email=data.customer_email,
                metadata={"resource_id": data.resource_id},
            )
        except StripeServiceError as e:
            log_payment_operation(
                logger,
                "create_payment_intent",
                booking_id=booking_id,
                amount_cents=amount,
                error=str(e),
            )
            raise DownstreamFailure(
                ErrorCode.PAYMENT_FAILED,
                details={
                    "reason": get_user_friendly_stripe_message(e.stripe_error_code),
                    "retryable": str(is_stripe_error_retryable(e.stripe_error_code)).lower(),
                },
            ) from e

        log_payment_operation(
            logger,
            "create_payment_intent",
            payment_intent_id=intent.payment_intent_id,
            booking_id=booking_id,
            amount_cents=amount,
            status=intent.status,
        )
        return intent

    def _cancel_payment_intent(self, payment_intent_id: str, booking_id: str) -> None:
        try:
            self.stripe.cancel_payment_intent(payment_intent_id)
        except StripeServiceError as e:
            log_payment_operation(
                logger,
                "cancel_payment_intent",
                payment_intent_id=payment_intent_id,
                booking_id=booking_id,
                error=str(e),
            )

    def _reprice_payment_intent(self, booking: Booking, amount: int) -> PaymentIntent:
        """Point the unpaid intent of ``booking`` at a new amount before the commit."""
        try:
            intent = self.stripe.update_payment_intent_amount(booking.payment_intent_id, amount)
        except StripeServiceError as e:
            log_payment_operation(
                logger,
                "update_payment_intent",
                payment_intent_id=booking.payment_intent_id,
                booking_id=booking.booking_id,
                amount_cents=amount,
                error=str(e),
            )
            raise DownstreamFailure(
                ErrorCode.PAYMENT_FAILED,
                details={
                    "reason": get_user_friendly_stripe_message(e.stripe_error_code),
                    "retryable": str(is_stripe_error_retryable(e.stripe_error_code)).lower(),
                },
            ) from e

        log_payment_operation(
            logger,
            "update_payment_intent",
            payment_intent_id=intent.payment_intent_id,
            booking_id=booking.booking_id,
            amount_cents=amount,
            status=intent.status,
        )
        return intent

    def _restore_payment_intent(self, booking: Booking) -> None:
        """Undo a reprice after the commit lost; the booking kept its old amount."""
        try:
            self.stripe.update_payment_intent_amount(booking.payment_intent_id, booking.amount_due)
        except StripeServiceError as e:
            log_payment_operation(
                logger,
                "update_payment_intent",
                payment_intent_id=booking.payment_intent_id,
                booking_id=booking.booking_id,
                amount_cents=booking.amount_due,
                error=str(e),
            )

    def _issue_refund(
        self,
        booking: Booking,
        amount: int,
        *,
        reason: str,
        idempotency_key: str,
    ) -> RefundStatus:
        """Request a refund; failures are logged, never raised."""
        if not booking.payment_intent_id:
            log_payment_operation(
                logger,
                "create_refund",
                booking_id=booking.booking_id,
                amount_cents=amount,
                error="no payment intent on booking, refund must be handled manually",
            )
            return RefundStatus.FAILED

        try:
            refund = self.stripe.create_refund(
                payment_intent_id=booking.payment_intent_id,
                amount_cents=amount,
                reason=reason,
                idempotency_key=idempotency_key,
            )
        except StripeServiceError as e:
            log_payment_operation(
                logger,
                "create_refund",
                payment_intent_id=booking.payment_intent_id,
                booking_id=booking.booking_id,
                amount_cents=amount,
                error=str(e),
                stripe_error_code=e.stripe_error_code,
            )
            return RefundStatus.FAILED

        log_payment_operation(
            logger,
            "create_refund",
            payment_intent_id=booking.payment_intent_id,
            booking_id=booking.booking_id,
            amount_cents=amount,
            status=refund.get("status"),
            refund_id=refund.get("refund_id"),
        )
        return RefundStatus.SUCCEEDED

    def _record_refund_success(self, booking: Booking, payment_status: PaymentStatus) -> Booking:
        """Store the outcome of the refund on a cancelled booking."""
        changes = {"refund_status": RefundStatus.SUCCEEDED, "payment_status": payment_status}
        assert_bookkeeping_update(booking.status, changes)
        updated = self._next_version(booking, self._now(), **changes)
        return self._save_best_effort(updated, booking)

    def _record_partial_refund(self, booking: Booking, amount: int) -> Booking:
        updated = self._next_version(
            booking,
            self._now(),
            amount_paid=booking.amount_paid - amount,
            payment_status=PaymentStatus.PARTIALLY_REFUNDED,
        )
        return self._save_best_effort(updated, booking)

    def _save_best_effort(self, updated: Booking, previous: Booking) -> Booking:
        """Record the outcome of a refund that already happened.

        The money has moved, so a version conflict here is only logged for
        reconciliation and the previous record is returned.
        """
        try:
            self._save(updated, previous.version)
        except InvalidStatus:
            logger.warning(
                "Refund outcome not recorded, booking changed concurrently",
                extra={"booking_id": previous.booking_id},
            )
            return previous
        return updated
