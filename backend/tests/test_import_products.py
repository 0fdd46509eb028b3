import io

import pytest

from models.location import Location
from models.product import Product
from models.stock import MoveHistory, Stock
from models.users import User
from utils.import_products import import_products, load_frame

CSV = """SKU,Name,Unit,Min_Stock,Price,Location,Quantity
bolt-1,Steel bolt,pcs,10,0.25,Main,100
bolt-1,Steel bolt,pcs,10,0.25,Annex,40
wire-1,Copper wire,m,0,1.5,,
,Nameless,pcs,0,1,Main,5
nut-1,Nut,pcs,abc,1,Main,5
"""


@pytest.fixture
def importer(db, admin):
    return db.query(User).filter(User.id == admin.id).one()


def test_load_frame_requires_columns():
    with pytest.raises(ValueError):
        load_frame(io.StringIO("name,price\nX,1\n"))


def test_import_creates_products_and_opening_stock(db, importer):
    summary = import_products(db, load_frame(io.StringIO(CSV)), importer)
    assert summary == {"created": 2, "updated": 0, "skipped": 2, "stock_rows": 2}

    bolt = db.query(Product).filter(Product.sku == "BOLT-1").one()
    assert bolt.min_stock == 10
    assert {loc.name for loc in db.query(Location)} == {"Main", "Annex"}
    assert sum(s.quantity for s in db.query(Stock).filter(Stock.product_id == bolt.id)) == 140

    moves = db.query(MoveHistory).all()
    assert {m.move_type for m in moves} == {"ADJUSTMENT_INCREASE"}
    assert all(m.user_id == importer.id for m in moves)


def test_reimport_updates_without_doubling_stock(db, importer):
    import_products(db, load_frame(io.StringIO(CSV)), importer)
    changed = CSV.replace("Steel bolt,pcs,10,0.25", "Steel bolt M8,pcs,12,0.30")
    summary = import_products(db, load_frame(io.StringIO(changed)), importer)

    assert summary["created"] == 0
    assert summary["updated"] == 2
    assert summary["stock_rows"] == 0
    bolt = db.query(Product).filter(Product.sku == "BOLT-1").one()
    assert (bolt.name, bolt.min_stock, bolt.price) == ("Steel bolt M8", 12, 0.30)
    assert sum(s.quantity for s in db.query(Stock).filter(Stock.product_id == bolt.id)) == 140


def test_location_names_match_literally(db, importer):
    db.add(Location(name="ShelfXA"))
    db.commit()

    csv = "sku,name,location,quantity\nclip-1,Clip,shelf_a,3\n"
    import_products(db, load_frame(io.StringIO(csv)), importer)

    assert {loc.name for loc in db.query(Location)} == {"ShelfXA", "shelf_a"}
