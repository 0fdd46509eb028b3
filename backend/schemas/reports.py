# schemas/reports.py
from typing import List, Optional, Dict
from pydantic import BaseModel


# Stock report
class StockReportRow(BaseModel):
    product_id: int
    product_name: str
    sku: str
    unit: str
    min_stock: int
    price: float
    location_id: int
    location_name: str
    quantity: int
    value: float

class StockReportSummary(BaseModel):
    total_products: int
    low_stock_count: int
    out_of_stock_count: int
    total_value: float
    average_stock_level: float

class StockReport(BaseModel):
    stocks: List[StockReportRow]
    summary: StockReportSummary


# Shared aggregate for sales and purchase reports
class Aggregate(BaseModel):
    id: int
    name: str
    quantity: int
    amount: float

class TradeSummary(BaseModel):
    total_orders: int
    total_items: int
    total_amount: float
    average_order_value: float

class SalesReport(BaseModel):
    summary: TradeSummary
    top_products: List[Aggregate]
    top_locations: List[Aggregate]

class PurchaseReport(BaseModel):
    summary: TradeSummary
    top_vendors: List[Aggregate]
    top_products: List[Aggregate]


# Movement report
class ProductFlow(BaseModel):
    product_id: int
    name: str
    quantity_in: int
    quantity_out: int

class MovementSummary(BaseModel):
    total_movements: int
    total_in: int
    total_out: int
    net_change: int

class MovementReport(BaseModel):
    summary: MovementSummary
    by_type: Dict[str, int]
    by_product: List[ProductFlow]


class ProfitLossReport(BaseModel):
    revenue: float
    sales_orders: int
    costs: float
    purchase_orders: int
    gross_profit: float
    margin: float
    inventory_value: float
    stock_rows: int


# Activity report
class UserActivity(BaseModel):
    user_id: int
    name: str
    email: str
    role: str
    receipts: int
    deliveries: int
    transfers: int
    adjustments: int
    total: int

class ActivitySummary(BaseModel):
    receipts: int
    deliveries: int
    transfers: int
    adjustments: int
    total: int

class ActivityReport(BaseModel):
    summary: ActivitySummary
    users: List[UserActivity]
    date_from: Optional[str] = None
    date_to: Optional[str] = None
