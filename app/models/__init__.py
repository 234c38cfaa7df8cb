from app.models.burden_rate import BurdenRate, BurdenRateAudit
from app.models.customer import Customer, CustomerContact
from app.models.hours_entry import HoursEntry
from app.models.invoice import Invoice
from app.models.order import Order, OrderTradeRequirement
from app.models.quote import OrderEconomicsSnapshot, Quote, QuoteLine
from app.models.user import User

__all__ = [
    "BurdenRate",
    "BurdenRateAudit",
    "Customer",
    "CustomerContact",
    "HoursEntry",
    "Invoice",
    "Order",
    "OrderEconomicsSnapshot",
    "OrderTradeRequirement",
    "Quote",
    "QuoteLine",
    "User",
]
