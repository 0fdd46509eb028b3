# backend/utils/pdf.py
import logging
from pathlib import Path
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from config import settings
from models.company import CompanyInfo
from models.delivery import DeliveryOrder

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parents[1]
FONT_DIRS = [BACKEND_DIR / "assets" / "fonts", BACKEND_DIR / "fonts"]

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
_fonts_inited = False


def _find_font(name: str) -> Optional[Path]:
    for d in FONT_DIRS:
        p = d / name
        if p.exists():
            return p
    return None


def _init_fonts() -> None:
    """Use DejaVu when the font files ship with the backend, Helvetica otherwise."""
    global _fonts_inited, FONT_REGULAR, FONT_BOLD
    if _fonts_inited:
        return
    _fonts_inited = True

    regular_path = _find_font("DejaVuSans.ttf")
    if regular_path is None:
        logger.info("DejaVu fonts not found, delivery notes use Helvetica")
        return
    pdfmetrics.registerFont(TTFont("DejaVu", str(regular_path)))
    FONT_REGULAR = FONT_BOLD = "DejaVu"

    bold_path = _find_font("DejaVuSans-Bold.ttf")
    if bold_path is not None:
        pdfmetrics.registerFont(TTFont("DejaVu-Bold", str(bold_path)))
        FONT_BOLD = "DejaVu-Bold"


def delivery_pdf_path(delivery: DeliveryOrder) -> Path:
    out_dir = Path(settings.STORAGE_DIR) / "deliveries"
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir / f"{delivery.delivery_number or delivery.id}.pdf"


def generate_delivery_pdf(delivery: DeliveryOrder, out_path: Path,
                          company: Optional[CompanyInfo] = None) -> Path:
    """
    Render a delivery note:
    - Header with document number, status and dates
    - Sender (company) and recipient blocks
    - Product table: name, SKU, quantity, unit
    - Signature lines
    """
    _init_fonts()

    c = canvas.Canvas(str(out_path), pagesize=A4)
    width, height = A4
    y = height - 25 * mm

    c.setFont(FONT_BOLD, 16)
    c.drawString(20 * mm, y, f"Delivery note {delivery.delivery_number or delivery.id}")
    y -= 10 * mm

    c.setFont(FONT_REGULAR, 10)
    created = delivery.created_at.strftime("%Y-%m-%d") if delivery.created_at else "-"
    c.drawString(20 * mm, y, f"Date: {created}")
    c.drawString(110 * mm, y, f"Status: {delivery.status}")
    y -= 6 * mm
    if delivery.validated_at:
        c.drawString(20 * mm, y, f"Validated: {delivery.validated_at.strftime('%Y-%m-%d %H:%M')}")
        y -= 6 * mm
    c.drawString(20 * mm, y, f"Ship from: {delivery.location.name if delivery.location else '-'}")
    y -= 10 * mm

    # Sender (left) and recipient (right)
    c.setFont(FONT_BOLD, 10)
    c.drawString(20 * mm, y, "Sender")
    c.drawString(110 * mm, y, "Recipient")
    y -= 6 * mm
    c.setFont(FONT_REGULAR, 10)

    sender = []
    if company is not None:
        sender = [company.company_name, company.address,
                  " ".join(p for p in (company.zip_code, company.city) if p),
                  company.country, company.phone, company.email]
    recipient = [delivery.customer_name, delivery.shipping_address]

    block_y = y
    for line in [s for s in sender if s]:
        c.drawString(20 * mm, block_y, str(line)[:45])
        block_y -= 5 * mm
    right_y = y
    for line in [r for r in recipient if r]:
        c.drawString(110 * mm, right_y, str(line)[:45])
        right_y -= 5 * mm
    y = min(block_y, right_y) - 8 * mm

    c.setFont(FONT_BOLD, 10)
    c.drawString(20 * mm, y, "Product")
    c.drawString(100 * mm, y, "SKU")
    c.drawRightString(160 * mm, y, "Quantity")
    c.drawString(165 * mm, y, "Unit")
    y -= 3 * mm
    c.line(20 * mm, y, 190 * mm, y)
    y -= 6 * mm

    c.setFont(FONT_REGULAR, 10)
    total = 0
    for item in delivery.items:
        product = item.product
        c.drawString(20 * mm, y, (product.name if product else "")[:45])
        c.drawString(100 * mm, y, (product.sku if product else "")[:20])
        c.drawRightString(160 * mm, y, str(item.quantity_delivered))
        c.drawString(165 * mm, y, (product.unit if product else "")[:10])
        total += item.quantity_delivered
        y -= 6 * mm
        if y < 40 * mm:
            c.showPage()
            y = height - 20 * mm
            c.setFont(FONT_REGULAR, 10)

    c.line(20 * mm, y, 190 * mm, y)
    y -= 6 * mm
    c.setFont(FONT_BOLD, 10)
    c.drawString(20 * mm, y, "Total items")
    c.drawRightString(160 * mm, y, str(total))
    y -= 10 * mm

    c.setFont(FONT_REGULAR, 10)
    if delivery.notes:
        c.drawString(20 * mm, y, f"Notes: {delivery.notes[:90]}")
        y -= 15 * mm
    else:
        y -= 5 * mm
    c.drawString(20 * mm, y, "Issued by: __________________________")
    c.drawString(110 * mm, y, "Received by: ________________________")

    c.showPage()
    c.save()
    logger.info("Delivery note written to %s", out_path)
    return out_path
