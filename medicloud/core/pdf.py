"""
PDF export of patient profiles and bill receipts.
"""
from datetime import datetime
from io import BytesIO
from typing import List, Optional
import logging
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..patients.models import BillPayment, PatientRecord
from .images import parse_data_uri

# Set up logging
logger = logging.getLogger(__name__)

HOSPITAL_NAME = "RMM Hospital (ENT)"
HEADER_COLOR = colors.HexColor("#52271e")


def format_bill_date(value: str) -> str:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%B %d, %Y")
    except ValueError:
        return value


def format_amount(amount: float) -> str:
    return f"Rs. {amount:,.2f}"


def _image_flowable(data_uri: str, width: float, height: float, label: str) -> Optional[Image]:
    if not data_uri:
        return None
    try:
        _, content = parse_data_uri(data_uri)
        ImageReader(BytesIO(content)).getSize()
        image = Image(BytesIO(content), width=width, height=height)
        image.hAlign = "RIGHT"
        return image
    except Exception as e:
        logger.error(f"Error adding {label} image to PDF: {str(e)}")
        return None


def _grid_table(rows: List[list], col_widths: List[float]) -> Table:
    table = Table(rows, colWidths=col_widths)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_COLOR),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.lightgrey]),
    ]))
    return table


def _build(elements: list) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4)
    doc.build(elements)
    return buffer.getvalue()


def render_profile_pdf(patient: PatientRecord) -> bytes:
    """
    Render a patient's profile as a PDF document.

    Args:
        patient: Normalized patient record

    Returns:
        bytes: PDF file content
    """
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle('ProfileTitle', parent=styles['Heading1'], alignment=1, spaceAfter=20)
    section_style = styles['Heading2']
    body_style = styles['BodyText']

    elements = [Paragraph(f"Patient Profile - {HOSPITAL_NAME}", title_style)]

    photo = _image_flowable(patient.face_image, 1.6 * inch, 1.6 * inch, "face")
    if photo:
        elements.append(photo)

    elements.append(Paragraph("Personal Information", section_style))
    lines = [
        f"Patient ID: {patient.id}",
        f"Name: {patient.full_name}",
        f"Age: {patient.age}, Gender: {patient.gender}",
        f"Blood Group: {patient.blood_group}",
        f"Contact: {patient.contact_number}",
    ]
    if patient.alternative_contact:
        lines.append(f"Alt. Contact: {patient.alternative_contact}")
    lines.append(f"Address: {patient.house_address}")
    if patient.allergies:
        lines.append(f"Allergies: {', '.join(patient.allergies)}")
    for line in lines:
        elements.append(Paragraph(escape(line), body_style))

    elements.append(Paragraph("Emergency Contact", section_style))
    elements.append(Paragraph(escape(f"{patient.emergency_contact_name} ({patient.emergency_contact_relation})"), body_style))
    elements.append(Paragraph(escape(f"Phone: {patient.emergency_contact_phone}"), body_style))
    elements.append(Spacer(1, 0.2 * inch))

    if patient.diseases:
        rows = [["Medical History", "Status"]]
        rows += [[disease.name, disease.status.value] for disease in patient.diseases]
        elements.append(_grid_table(rows, [3.5 * inch, 2 * inch]))
        elements.append(Spacer(1, 0.2 * inch))

    if patient.bill_payments:
        rows = [["Bill Date", "Amount", "Diagnosis", "Payment Method", "Status"]]
        for bill in patient.bill_payments:
            rows.append([
                format_bill_date(bill.date),
                format_amount(bill.amount),
                bill.diagnosis or "N/A",
                bill.payment_method.value if bill.payment_method else "N/A",
                bill.status.value,
            ])
        elements.append(_grid_table(rows, [1.4 * inch, 1.1 * inch, 1.7 * inch, 1.3 * inch, 0.8 * inch]))
        elements.append(Spacer(1, 0.2 * inch))

    signature = _image_flowable(patient.signature_image, 1.8 * inch, 1 * inch, "signature")
    if signature:
        elements.append(signature)
        elements.append(Paragraph("Signature", ParagraphStyle('SignatureLabel', parent=body_style, alignment=2)))

    return _build(elements)


def render_bill_pdf(patient: PatientRecord, bill: BillPayment) -> bytes:
    """
    Render a single bill as a payment receipt.

    Args:
        patient: Normalized patient record
        bill: One of the patient's bills

    Returns:
        bytes: PDF file content
    """
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle('ReceiptTitle', parent=styles['Heading1'], alignment=1, spaceAfter=20)
    body_style = styles['BodyText']

    elements = [Paragraph(f"{HOSPITAL_NAME} - Payment Receipt", title_style)]

    header = Table([
        [f"Patient: {patient.first_name} {patient.last_name}", f"Bill Date: {format_bill_date(bill.date)}"],
        [f"Patient ID: {patient.id}", f"Status: {bill.status.value}"],
    ], colWidths=[3.2 * inch, 3.2 * inch])
    header.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 11),
        ('LINEBELOW', (0, -1), (-1, -1), 1, colors.black),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(header)
    elements.append(Spacer(1, 0.2 * inch))

    elements.append(Paragraph("Billing Details", styles['Heading2']))
    details = [
        ["Description", "Details"],
        ["Diagnosis", bill.diagnosis or "N/A"],
        ["Payment Method", bill.payment_method.value if bill.payment_method else "N/A"],
    ]
    elements.append(_grid_table(details, [2.5 * inch, 3.9 * inch]))
    elements.append(Spacer(1, 0.2 * inch))

    if bill.tablets:
        rows = [["Prescribed Tablets", "Usage"]]
        rows += [[tablet.name, tablet.usage] for tablet in bill.tablets]
        elements.append(_grid_table(rows, [2.5 * inch, 3.9 * inch]))
        elements.append(Spacer(1, 0.2 * inch))

    total_style = ParagraphStyle('Total', parent=styles['Heading2'], alignment=2)
    elements.append(Paragraph(f"Total Amount: {format_amount(bill.amount)}", total_style))
    elements.append(Spacer(1, 0.3 * inch))

    signature = _image_flowable(patient.signature_image, 1.6 * inch, 0.8 * inch, "signature")
    if signature:
        elements.append(signature)
        elements.append(Paragraph("Patient Signature", ParagraphStyle('SignatureLabel', parent=body_style, alignment=2)))

    return _build(elements)


def profile_pdf_filename(patient: PatientRecord) -> str:
    return f"{patient.first_name}_Patient_Profile.pdf"


def bill_pdf_filename(patient: PatientRecord, bill: BillPayment) -> str:
    return f"Bill_{bill.date[:10]}_{patient.id}.pdf"
