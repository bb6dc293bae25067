"""Invoice arithmetic, bill numbering and payment recording.

Invariants kept on every bill after create or payment:

    total_amount == subtotal + tax_amount - discount
    balance      == total_amount - paid_amount >= 0
"""
import logging
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Mapping, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hospital_api.core import config
from hospital_api.core.errors import ConflictError, InvalidPaymentError, ValidationError
from hospital_api.models.appointment import Appointment
from hospital_api.models.billing import Billing, BillStatus, PaymentMethod
from hospital_api.models.user import Role, User

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_totals(items: Iterable[Mapping], tax=0, discount=0) -> Tuple[List[dict], Decimal, Decimal]:
    """Return (line items, subtotal, total) for a bill."""
    tax = to_money(tax)
    discount = to_money(discount)
    if tax < 0 or discount < 0:
        raise ValidationError("Tax and discount cannot be negative")

    lines = []
    subtotal = Decimal("0.00")
    for item in items:
        description = item.get("description") or item.get("name")
        quantity = item.get("quantity")
        unit_price = to_money(item.get("unit_price"))
        if not description:
            raise ValidationError("Every bill item needs a description")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError(f"Quantity for {description} must be a positive integer")
        if unit_price < 0:
            raise ValidationError(f"Unit price for {description} cannot be negative")

        line_total = to_money(unit_price * quantity)
        subtotal += line_total
        lines.append({
            "description": description,
            "quantity": quantity,
            "unit_price": float(unit_price),
            "total": float(line_total),
        })

    if not lines:
        raise ValidationError("A bill needs at least one item")

    total = subtotal + tax - discount
    if total < 0:
        raise ValidationError("Discount cannot exceed subtotal plus tax")
    return lines, subtotal, total


def next_bill_number(db: Session, prefix: str, issued_on: date) -> str:
    period = f"{prefix}-{issued_on:%Y%m}-"
    last = db.query(func.max(Billing.bill_number)).filter(Billing.bill_number.like(f"{period}%")).scalar()
    sequence = int(last.rsplit("-", 1)[1]) + 1 if last else 1
    return f"{period}{sequence:05d}"


def create_bill(
    db: Session,
    *,
    patient_id: int,
    items: Iterable[Mapping],
    created_by: User,
    tax=0,
    discount=0,
    appointment_id: int = None,
    issued_on: date = None,
    due_date: date = None,
    prefix: str = "BILL",
    **extra,
) -> Billing:
    patient = db.query(User).filter(User.id == patient_id).first()
    if patient is None or patient.role != Role.PATIENT:
        raise ValidationError("patient_id must reference a patient")
    if appointment_id is not None:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if appointment is None or appointment.patient_id != patient_id:
            raise ValidationError("appointment_id must reference an appointment of this patient")

    lines, subtotal, total = compute_totals(items, tax, discount)
    issued_on = issued_on or date.today()

    bill = Billing(
        patient_id=patient_id,
        appointment_id=appointment_id,
        bill_date=issued_on,
        due_date=due_date or issued_on + timedelta(days=config.BILL_DUE_DAYS),
        items=lines,
        subtotal=subtotal,
        tax_amount=to_money(tax),
        discount=to_money(discount),
        total_amount=total,
        paid_amount=Decimal("0.00"),
        balance=total,
        # Nothing is owed on a fully discounted bill
        status=BillStatus.PAID if total == 0 else BillStatus.PENDING,
        created_by=created_by.id,
        **extra,
    )

    # Keep earlier pending writes out of the savepoint so a retry cannot undo them
    db.flush()
    for attempt in range(1, config.BILL_NUMBER_RETRIES + 1):
        bill.bill_number = next_bill_number(db, prefix, issued_on)
        try:
            with db.begin_nested():
                db.add(bill)
        except IntegrityError as exc:
            if "bill_number" not in str(exc.orig):
                raise
            logger.warning("Bill number %s already taken (attempt %s)", bill.bill_number, attempt)
            continue
        logger.info("Created bill %s for patient %s: total %s", bill.bill_number, patient_id, total)
        return bill

    raise ConflictError("Could not allocate a unique bill number, please retry")


def record_payment(bill: Billing, amount, method: PaymentMethod = None) -> Billing:
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")

    total = to_money(bill.total_amount)
    paid = to_money(bill.paid_amount) + amount
    balance = total - paid
    if balance < 0:
        raise InvalidPaymentError(
            f"Payment amount exceeds bill balance. Outstanding: {to_money(bill.balance)}"
        )

    bill.paid_amount = paid
    bill.balance = balance
    if balance == 0:
        bill.status = BillStatus.PAID
    elif paid > 0:
        bill.status = BillStatus.PARTIAL
    if method is not None:
        bill.payment_method = PaymentMethod(method)

    logger.info("Payment of %s recorded on bill %s; balance %s", amount, bill.bill_number, balance)
    return bill
