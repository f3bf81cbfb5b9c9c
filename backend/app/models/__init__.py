from app.models.tenant import Tenant
from app.models.user import User
from app.models.employee import Employee
from app.models.pay_period import PayPeriod
from app.models.time_entry import TimeEntry
from app.models.pay_stub import PayStub
from app.models.quickbooks_connection import QuickBooksConnection

__all__ = [
    "Tenant",
    "User",
    "Employee",
    "PayPeriod",
    "TimeEntry",
    "PayStub",
    "QuickBooksConnection",
]
