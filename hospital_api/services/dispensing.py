import logging
from collections import OrderedDict
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from hospital_api.core.errors import InsufficientStockError, ValidationError
from hospital_api.database import transaction
from hospital_api.models.billing import Billing
from hospital_api.models.prescription import Prescription
from hospital_api.models.user import User
from hospital_api.services.billing import create_bill
from hospital_api.services.inventory import StockOperation, adjust_stock, find_stock_item

logger = logging.getLogger(__name__)


def _reserve_lines(db: Session, prescription: Prescription):
    """Resolve medication lines to locked inventory rows and check stock.

    Nothing is written here; a shortfall on any line rejects the whole
    prescription before stock moves.
    """
    requested = OrderedDict()
    bill_items = []
    for line in prescription.medications or []:
        name = (line.get("name") or "").strip()
        quantity = line.get("quantity")
        if not name:
            raise ValidationError("Prescription has a medication without a name")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError(f"Medication {name} needs a positive quantity")

        item = find_stock_item(db, name, lock=True)
        if item is None:
            raise ValidationError(f"Medication {name} not found in inventory")

        held = requested.setdefault(item.id, [item, 0])
        held[1] += quantity
        unit_price = line.get("unit_price")
        bill_items.append({
            "description": item.name,
            "quantity": quantity,
            "unit_price": unit_price if unit_price is not None else item.unit_price,
        })

    if not requested:
        raise ValidationError("Prescription has no medications to dispense")

    for item, quantity in requested.values():
        if item.quantity < quantity:
            raise InsufficientStockError(item.name, item.quantity, quantity)
    return list(requested.values()), bill_items


def dispense_prescription(db: Session, prescription: Prescription, pharmacist: User) -> Billing:
    """Decrement stock, mark the prescription dispensed and bill the patient.

    All writes commit together; any failure rolls every one of them back.
    """
    with transaction(db):
        if prescription.is_dispensed:
            raise ValidationError("Prescription already dispensed")

        reserved, bill_items = _reserve_lines(db, prescription)
        for item, quantity in reserved:
            adjust_stock(item, quantity, StockOperation.SUBTRACT)

        prescription.is_dispensed = True
        prescription.dispensed_by = pharmacist.id
        prescription.dispensed_at = datetime.now(timezone.utc)

        bill = create_bill(
            db,
            patient_id=prescription.patient_id,
            items=bill_items,
            created_by=pharmacist,
            prefix="PHARM",
            notes=f"Pharmacy bill for prescription #{prescription.id}",
        )

    logger.info("Prescription %s dispensed by pharmacist %s; bill %s",
                prescription.id, pharmacist.id, bill.bill_number)
    return bill
