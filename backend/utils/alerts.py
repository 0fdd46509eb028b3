# utils/alerts.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from models.alert import LowStockAlert, AlertSeverity
from models.product import Product
from models.stock import Stock
from models.settings import SystemSetting

# Share of the minimum at or below which an alert escalates
CRITICAL_RATIO = 0.20
WARNING_RATIO = 0.50


def compute_severity(quantity: int, min_stock: int) -> Optional[AlertSeverity]:
    """Classify a stock level against the product minimum.

    Returns None while the level is above the minimum. An empty location is
    always CRITICAL, even for products without a minimum.
    """
    if quantity > min_stock:
        return None
    if quantity <= 0:
        return AlertSeverity.CRITICAL
    ratio = quantity / min_stock
    if ratio <= CRITICAL_RATIO:
        return AlertSeverity.CRITICAL
    if ratio <= WARNING_RATIO:
        return AlertSeverity.WARNING
    return AlertSeverity.LOW


def alerts_enabled(db: Session) -> bool:
    row = db.query(SystemSetting).filter(SystemSetting.key == "enable_low_stock_alerts").first()
    if row is None:
        return True
    return row.value.strip().lower() in {"1", "true", "yes", "on"}


def refresh_alert(db: Session, product: Product, location_id: int, quantity: int) -> Optional[LowStockAlert]:
    """Raise, update or clear the alert for one product/location pair.

    Does not commit; runs inside the caller's stock transaction.
    """
    alert = (
        db.query(LowStockAlert)
        .filter(LowStockAlert.product_id == product.id, LowStockAlert.location_id == location_id)
        .first()
    )
    severity = compute_severity(quantity, product.min_stock or 0)

    if severity is None:
        if alert is not None:
            db.delete(alert)
            db.flush()
        return None

    if alert is None:
        alert = LowStockAlert(product_id=product.id, location_id=location_id)
        db.add(alert)
    elif (
        alert.current_qty == quantity
        and alert.severity == severity.value
        and alert.min_qty == (product.min_stock or 0)
    ):
        # Unchanged level keeps its read state
        return alert

    alert.current_qty = quantity
    alert.min_qty = product.min_stock or 0
    alert.severity = severity.value
    alert.is_read = False
    alert.read_at = None
    alert.updated_at = datetime.now(timezone.utc)
    # Later moves in the same transaction must see this row
    db.flush()
    return alert


def regenerate_alerts(db: Session) -> int:
    """Re-evaluate every stock row and return how many alerts are open."""
    generated = 0
    rows = db.query(Stock).join(Product).all()
    for stock in rows:
        if refresh_alert(db, stock.product, stock.location_id, stock.quantity) is not None:
            generated += 1
    db.commit()
    return generated
