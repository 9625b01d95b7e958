"""
Settlement of a completed charge across the payment ledger, the payer's
class sets and the class enrollment counters.

The three writes run in order, each atomic on its own, with no transaction
around them:

1. append the Payment (failure aborts, nothing else is touched)
2. move the purchased classes from ``booked`` to ``enrolled`` on the payer
3. add one to ``enrolled_count`` of every purchased class

A failure in step 2 or 3 leaves the payment in place and is reported in the
returned ``SettlementOutcome`` so it can be reconciled. Steps 2 and 3 converge
when re-run; step 1 is only deduplicated through a caller-supplied
idempotency key, and a replayed key only re-runs the steps that have not landed.
"""
import logging
from dataclasses import dataclass, field

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from rest_framework.exceptions import NotFound

from classes.models import Class
from user.lookup import get_member, resolve_classes
from .exceptions import (
    CapacityUpdateFailed,
    IdempotencyConflict,
    InvalidAmount,
    LedgerWriteFailed,
    MembershipUpdateFailed,
)
from .models import CapacityIncrement, Payment

logger = logging.getLogger(__name__)

SUCCEEDED = 'succeeded'
FAILED = 'failed'


@dataclass(frozen=True)
class StepOutcome:
    status: str
    error: str = ''
    code: str = ''
    failed_ids: frozenset = frozenset()

    @classmethod
    def ok(cls):
        return cls(status=SUCCEEDED)

    @classmethod
    def from_error(cls, exc):
        return cls(status=FAILED, error=str(exc), code=exc.code, failed_ids=exc.failed_ids)

    @property
    def succeeded(self):
        return self.status == SUCCEEDED

    def as_dict(self):
        data = {'status': self.status}
        if not self.succeeded:
            data['error'] = self.error
            data['code'] = self.code
            if self.failed_ids:
                data['failed_class_ids'] = sorted(self.failed_ids)
        return data


@dataclass(frozen=True)
class SettlementOutcome:
    payment_id: int
    membership: StepOutcome
    capacity: StepOutcome
    replayed: bool = False
    class_ids: tuple = field(default_factory=tuple)

    @property
    def settled(self):
        return self.membership.succeeded and self.capacity.succeeded

    def as_dict(self):
        return {
            'payment_id': self.payment_id,
            'replayed': self.replayed,
            'settled': self.settled,
            'class_ids': list(self.class_ids),
            'membership': self.membership.as_dict(),
            'capacity': self.capacity.as_dict(),
        }


def normalize_class_ids(class_ids):
    """Distinct class ids, sorted; the set form every step works on."""
    try:
        ids = {int(pk) for pk in class_ids}
    except (TypeError, ValueError):
        raise ValueError(f"Invalid class ids: {class_ids!r}")
    if not ids or min(ids) <= 0:
        raise ValueError("At least one valid class id is required.")
    return sorted(ids)


def append_payment(email, amount, class_ids, currency='usd', transaction_id='', idempotency_key=None):
    """
    Step 1: record the payment.

    Returns:
        tuple: (payment, replayed) where ``replayed`` means the idempotency key
        already held a matching payment and nothing was written

    Raises:
        IdempotencyConflict: the key belongs to a payment with different content
        LedgerWriteFailed: the ledger could not be written
    """
    if idempotency_key:
        existing = Payment.objects.filter(idempotency_key=idempotency_key).first()
        if existing is not None:
            return _check_replay(existing, email, amount, class_ids), True

    try:
        with transaction.atomic():
            payment = Payment.objects.create(
                email=email,
                amount=amount,
                currency=currency,
                class_ids=list(class_ids),
                transaction_id=transaction_id or '',
                idempotency_key=idempotency_key or None,
            )
    except IntegrityError as e:
        if idempotency_key:
            # Lost the race against a concurrent request carrying the same key.
            existing = Payment.objects.filter(idempotency_key=idempotency_key).first()
            if existing is not None:
                return _check_replay(existing, email, amount, class_ids), True
        logger.error(f"Ledger write failed for {email}: {str(e)}")
        raise LedgerWriteFailed()
    except DatabaseError as e:
        logger.error(f"Ledger write failed for {email}: {str(e)}")
        raise LedgerWriteFailed()

    logger.info(f"Payment {payment.pk} recorded for {email}: {amount} {currency} for classes {payment.class_ids}")
    return payment, False


def _check_replay(payment, email, amount, class_ids):
    if payment.email != email or payment.amount != amount or sorted(payment.class_ids) != list(class_ids):
        logger.warning(f"Idempotency key {payment.idempotency_key} reused with different content by {email}")
        raise IdempotencyConflict()
    logger.info(f"Replaying settlement of payment {payment.pk} for {email}")
    return payment


def apply_membership(email, class_ids):
    """
    Step 2: empty the payer's ``booked`` set and union ``class_ids`` into ``enrolled``.

    Re-running it yields the same end state.
    """
    try:
        with transaction.atomic():
            member = get_member(email, for_update=True)
            enrolled = member.enrolled_class_ids() | set(class_ids)
            member.set_booked_and_enrolled(set(), enrolled)
    except Exception as e:
        logger.error(f"Membership update failed for {email}, classes {list(class_ids)}: {str(e)}")
        return StepOutcome.from_error(
            MembershipUpdateFailed(f"Could not enroll {email}: {str(e)}")
        )

    logger.info(f"{email} enrolled in classes {list(class_ids)}")
    return StepOutcome.ok()


def apply_capacity(payment, class_ids):
    """
    Step 3: count the payment once in each class's ``enrolled_count``.

    Each class is handled in its own transaction together with its
    ``CapacityIncrement`` marker, so a class already counted for this payment
    is skipped and a failure only affects that class.
    """
    failed = set()
    for class_id in class_ids:
        try:
            with transaction.atomic():
                _, created = CapacityIncrement.objects.get_or_create(
                    payment=payment,
                    enrolled_class_id=class_id,
                )
                if not created:
                    continue
                updated = Class.objects.filter(pk=class_id).update(enrolled_count=F('enrolled_count') + 1)
                if updated != 1:
                    raise Class.DoesNotExist(f"Class {class_id} not found.")
        except Exception as e:
            logger.error(f"Capacity update failed for class {class_id} of payment {payment.pk}: {str(e)}")
            failed.add(class_id)

    if failed:
        return StepOutcome.from_error(
            CapacityUpdateFailed(
                f"Enrollment count not updated for classes {sorted(failed)}.",
                failed_ids=failed,
            )
        )

    logger.info(f"Enrollment counts updated for payment {payment.pk}: classes {list(class_ids)}")
    return StepOutcome.ok()


def resume_settlement(payment, replayed=True):
    """
    Re-run whichever of steps 2 and 3 have not landed for a ledger payment.

    Step 2 only runs when a purchased class is missing from ``enrolled``, so
    classes booked after the payment settled are left alone.
    """
    class_ids = normalize_class_ids(payment.class_ids)
    membership_missing, missing_capacity = pending_steps(payment)
    membership = apply_membership(payment.email, class_ids) if membership_missing else StepOutcome.ok()
    capacity = apply_capacity(payment, sorted(missing_capacity)) if missing_capacity else StepOutcome.ok()
    return _outcome(payment, class_ids, membership, capacity, replayed)


def settle_payment(email, amount, class_ids, transaction_id='', idempotency_key=None, currency='usd'):
    """
    Record a completed charge and enroll the payer in the purchased classes.

    Raises:
        InvalidAmount: ``amount`` is not a positive number of subunits
        NotFound: the payer or one of the classes does not exist (nothing is written)
        IdempotencyConflict: ``idempotency_key`` was used for a different payment
        LedgerWriteFailed: the payment could not be recorded (nothing else is written)

    Returns:
        SettlementOutcome: the payment id plus one outcome per later step
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount()
    class_ids = normalize_class_ids(class_ids)
    get_member(email)
    resolve_classes(class_ids)

    payment, replayed = append_payment(
        email, amount, class_ids,
        currency=currency,
        transaction_id=transaction_id,
        idempotency_key=idempotency_key,
    )
    if replayed:
        return resume_settlement(payment)
    membership = apply_membership(email, class_ids)
    capacity = apply_capacity(payment, class_ids)
    return _outcome(payment, class_ids, membership, capacity, replayed)


def _outcome(payment, class_ids, membership, capacity, replayed):
    outcome = SettlementOutcome(
        payment_id=payment.pk,
        membership=membership,
        capacity=capacity,
        replayed=replayed,
        class_ids=tuple(class_ids),
    )
    if not outcome.settled:
        logger.warning(
            f"Payment {payment.pk} partially settled: membership={membership.status}, "
            f"capacity={capacity.status}, residual classes={sorted(capacity.failed_ids)}"
        )
    return outcome


def pending_steps(payment):
    """Which of steps 2 and 3 have not landed for ``payment``."""
    class_ids = set(normalize_class_ids(payment.class_ids))
    counted = set(payment.capacity_increments.values_list('enrolled_class_id', flat=True))
    missing_capacity = class_ids - counted
    try:
        member = get_member(payment.email)
    except NotFound:
        return True, missing_capacity
    return not class_ids <= member.enrolled_class_ids(), missing_capacity
