from app.schemas.auth import Token, LoginRequest, RefreshRequest, ChangePasswordRequest, UserMe
from app.schemas.employee import EmployeeCreate, EmployeeUpdate, EmployeeOut
from app.schemas.pay_period import PayPeriodCreate, PayPeriodUpdate, PayPeriodOut
from app.schemas.time_entry import TimeEntryOut, TimeEntryList, ManualTimeEntryCreate
from app.schemas.payroll import PayStubOut, PayrollSummary

__all__ = [
    "Token", "LoginRequest", "RefreshRequest", "ChangePasswordRequest", "UserMe",
    "EmployeeCreate", "EmployeeUpdate", "EmployeeOut",
    "PayPeriodCreate", "PayPeriodUpdate", "PayPeriodOut",
    "TimeEntryOut", "TimeEntryList", "ManualTimeEntryCreate",
    "PayStubOut", "PayrollSummary",
]
