from io import BytesIO
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.orm import Session

from hospital_api.core.access import ensure_doctor_relationship, ensure_patient_ownership, require_roles
from hospital_api.core.errors import NotFoundError
from hospital_api.core.pagination import PageParams, paginate
from hospital_api.core.security import get_current_user
from hospital_api.database import get_db
from hospital_api.models.billing import Billing, BillStatus
from hospital_api.models.user import Role, User
from hospital_api.schemas import BillResponse

router = APIRouter(prefix="/api/billing", tags=["billing"])


def get_visible_bill(db: Session, bill_id: int, user: User) -> Billing:
    bill = db.query(Billing).filter(Billing.id == bill_id).first()
    if not bill:
        raise NotFoundError("Bill not found")
    ensure_patient_ownership(user, bill.patient_id)
    ensure_doctor_relationship(db, user, bill.patient_id)
    return bill


@router.get("")
async def list_bills(
    status: Optional[BillStatus] = None,
    pages: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.ADMIN, Role.RECEPTIONIST)),
):
    query = db.query(Billing)
    if status:
        query = query.filter(Billing.status == status)
    bills, pagination = paginate(query.order_by(Billing.bill_date.desc(), Billing.id.desc()), pages)
    return {
        "success": True,
        "data": [BillResponse.model_validate(bill) for bill in bills],
        "pagination": pagination,
    }


@router.get("/{bill_id}")
async def get_bill(
    bill_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    bill = get_visible_bill(db, bill_id, current_user)
    return {"success": True, "data": BillResponse.model_validate(bill)}


def render_bill_pdf(bill: Billing) -> bytes:
    buffered = BytesIO()
    doc = SimpleDocTemplate(buffered, pagesize=letter)
    styles = getSampleStyleSheet()
    story = []

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=24,
        spaceAfter=30
    )
    story.append(Paragraph("Invoice", title_style))
    story.append(Paragraph(f"Bill Number: {bill.bill_number}", styles['Normal']))
    story.append(Paragraph(f"Bill Date: {bill.bill_date.strftime('%Y-%m-%d')}", styles['Normal']))
    story.append(Paragraph(f"Due Date: {bill.due_date.strftime('%Y-%m-%d')}", styles['Normal']))
    story.append(Spacer(1, 20))

    story.append(Paragraph("Patient Information:", styles['Heading2']))
    story.append(Paragraph(f"Name: {bill.patient.full_name}", styles['Normal']))
    story.append(Paragraph(f"Phone: {bill.patient.phone}", styles['Normal']))
    story.append(Spacer(1, 20))

    item_rows = [["Description", "Quantity", "Unit Price", "Total"]]
    for item in bill.items:
        item_rows.append([
            item['description'],
            str(item['quantity']),
            f"{item['unit_price']:.2f}",
            f"{item['total']:.2f}",
        ])
    item_rows.extend([
        ["", "", "Subtotal", f"{bill.subtotal:.2f}"],
        ["", "", "Tax", f"{bill.tax_amount:.2f}"],
        ["", "", "Discount", f"-{bill.discount:.2f}"],
        ["", "", "Total", f"{bill.total_amount:.2f}"],
        ["", "", "Paid", f"{bill.paid_amount:.2f}"],
        ["", "", "Balance", f"{bill.balance:.2f}"],
    ])

    items_table = Table(item_rows)
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('GRID', (0, 0), (-1, len(bill.items)), 1, colors.black),
        ('FONTNAME', (2, -3), (-1, -3), 'Helvetica-Bold'),
    ]))
    story.append(items_table)
    story.append(Spacer(1, 20))

    story.append(Paragraph(f"Status: {bill.status.value.title()}", styles['Normal']))
    if bill.notes:
        story.append(Paragraph(bill.notes, styles['Normal']))

    doc.build(story)
    return buffered.getvalue()


@router.get("/{bill_id}/pdf")
async def get_bill_pdf(
    bill_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    bill = get_visible_bill(db, bill_id, current_user)
    return Response(
        content=render_bill_pdf(bill),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{bill.bill_number}.pdf"'},
    )
