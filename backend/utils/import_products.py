# utils/import_products.py
"""
Bulk catalog import from CSV.

    python -m utils.import_products products.csv [--user admin@example.com]

Columns: sku, name, description, unit, min_stock, price, location, quantity.
Only sku and name are required. A SKU may appear on several rows to give
opening stock at several locations; product fields are taken from its first
row. Existing SKUs are updated in place and receive no opening stock, so a
file can be imported again without doubling quantities.
"""
import argparse
import logging
import os
import sys

import pandas as pd
from sqlalchemy import func
from sqlalchemy.orm import Session

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from database import SessionLocal, init_db
from models.adjustment import StockAdjustment
from models.location import Location
from models.product import Product
from models.stock import MoveType
from models.users import User, Role
from utils.inventory import document_number, increase_stock

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("sku", "name")
OPENING_REASON = "Opening stock (import)"


def load_frame(source) -> pd.DataFrame:
    """Read the CSV and normalize headers and blanks."""
    df = pd.read_csv(source, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")
    for column in ("description", "unit", "min_stock", "price", "location", "quantity"):
        if column not in df.columns:
            df[column] = ""
    df = df.apply(lambda col: col.str.strip())
    df["sku"] = df["sku"].str.upper()
    return df


def _to_int(value, default=0) -> int:
    return int(float(value)) if value not in ("", None) else default


def _to_float(value, default=0.0) -> float:
    return float(value) if value not in ("", None) else default


def _location(db: Session, name: str, cache: dict) -> Location:
    key = name.lower()
    if key not in cache:
        location = db.query(Location).filter(func.lower(Location.name) == name.lower()).first()
        if location is None:
            location = Location(name=name)
            db.add(location)
            db.flush()
            logger.info("Created location %s", name)
        cache[key] = location
    return cache[key]


def import_products(db: Session, df: pd.DataFrame, user: User) -> dict:
    """Upsert products and book opening stock; commits once at the end."""
    summary = {"created": 0, "updated": 0, "skipped": 0, "stock_rows": 0}
    new_skus = set()
    seen = set()
    locations = {}

    for index, row in df.iterrows():
        sku, name = row["sku"], row["name"]
        if not sku or not name:
            logger.warning("Row %s skipped: sku and name are required", index + 2)
            summary["skipped"] += 1
            continue

        try:
            min_stock = _to_int(row["min_stock"])
            price = _to_float(row["price"])
            quantity = _to_int(row["quantity"])
        except ValueError:
            logger.warning("Row %s skipped: bad number in %s", index + 2, sku)
            summary["skipped"] += 1
            continue
        if min_stock < 0 or price < 0 or quantity < 0:
            logger.warning("Row %s skipped: negative value in %s", index + 2, sku)
            summary["skipped"] += 1
            continue

        product = db.query(Product).filter(Product.sku == sku).first()
        if sku not in seen:
            seen.add(sku)
            if product is None:
                product = Product(sku=sku, name=name)
                db.add(product)
                new_skus.add(sku)
                summary["created"] += 1
            else:
                product.name = name
                summary["updated"] += 1
            product.description = row["description"] or product.description
            product.unit = row["unit"] or product.unit or "pcs"
            product.min_stock = min_stock
            product.price = price
            db.flush()

        if sku in new_skus and quantity > 0 and row["location"]:
            location = _location(db, row["location"], locations)
            adjustment = StockAdjustment(
                location_id=location.id,
                product_id=product.id,
                user_id=user.id,
                quantity_change=quantity,
                reason=OPENING_REASON,
            )
            db.add(adjustment)
            db.flush()
            adjustment.adjustment_number = document_number("ADJ", adjustment.id)
            increase_stock(
                db, product=product, location_id=location.id, quantity=quantity,
                user_id=user.id, move_type=MoveType.ADJUSTMENT_INCREASE,
                reference_id=adjustment.id,
                notes=f"Adjustment {adjustment.adjustment_number}: {OPENING_REASON}",
            )
            summary["stock_rows"] += 1

    db.commit()
    return summary


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import products from a CSV file")
    parser.add_argument("csv_path")
    parser.add_argument("--user", help="Email of the user recorded on stock moves (default: first admin)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    init_db()
    db = SessionLocal()
    try:
        query = db.query(User)
        if args.user:
            user = query.filter(User.email == args.user.strip().lower()).first()
        else:
            user = query.filter(User.role == Role.ADMIN.value).order_by(User.id.asc()).first()
        if user is None:
            logger.error("No user to record the import under. Create an admin first.")
            return 1

        df = load_frame(args.csv_path)
        summary = import_products(db, df, user)
        logger.info("Import finished: %s", summary)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
