"""
Tests for PayrollService – earnings math, pay stub calculation, summary preview,
locked pay periods – and the /payroll endpoints including the PDF download.
"""
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio

from app.models.employee import Employee
from app.models.time_entry import TimeEntry
from app.services.payroll_service import PayPeriodLockedError, PayrollService, calculate_earnings, money
from app.services.pdf_service import generate_pay_stub_pdf
from tests.conftest import auth_headers

D = Decimal


def test_money_rounds_half_up():
    assert money(D("1.005")) == D("1.01")
    assert money(D("1.004")) == D("1.00")


def test_calculate_earnings_with_overtime():
    """40h regular + 2h overtime at $20 → 800 + 60 = 860 gross."""
    e = calculate_earnings(D(40), D(2), D(20))

    assert e["regular_pay"] == D("800.00")
    assert e["overtime_pay"] == D("60.00")
    assert e["gross_pay"] == D("860.00")
    assert e["federal_tax"] == D("129.00")
    assert e["state_tax"] == D("43.00")
    assert e["social_security"] == D("53.32")
    assert e["medicare"] == D("12.47")
    assert e["total_deductions"] == D("237.79")
    assert e["net_pay"] == D("622.21")


def test_calculate_earnings_net_is_gross_minus_deductions():
    e = calculate_earnings(D("37.25"), D("3.75"), D("17.35"))
    assert e["net_pay"] == e["gross_pay"] - e["total_deductions"]
    assert e["total_deductions"] == e["federal_tax"] + e["state_tax"] + e["social_security"] + e["medicare"]


def test_calculate_earnings_zero_hours():
    e = calculate_earnings(D(0), D(0), D(20))
    assert e["gross_pay"] == 0
    assert e["net_pay"] == 0


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def worked_period(db, tenant, employee, pay_period):
    """Emily: 40h regular + 2h overtime. Jake: 30h regular."""
    jake = Employee(
        tenant_id=tenant.id, first_name="Jake", last_name="Miller", display_name="Jake Miller",
        hourly_rate=D("16.00"),
    )
    db.add(jake)
    await db.flush()

    rows = [(employee, 6, 8, 8, 0), (employee, 7, 8, 8, 0), (employee, 8, 8, 8, 0),
            (employee, 9, 8, 8, 0), (employee, 10, 10, 8, 2),
            (jake, 6, 10, 10, 0), (jake, 7, 10, 10, 0), (jake, 8, 10, 10, 0)]
    for emp, day, hours, regular, overtime in rows:
        db.add(TimeEntry(
            tenant_id=tenant.id, employee_id=emp.id, pay_period_id=pay_period.id,
            date=date(2025, 10, day), hours=D(hours), regular_hours=D(regular), overtime_hours=D(overtime),
        ))
    await db.commit()
    return pay_period, jake


# ── Service ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_calculate_pay_period(db, employee, worked_period):
    pay_period, jake = worked_period

    stubs = await PayrollService(db).calculate_pay_period(pay_period)
    await db.commit()

    by_employee = {s.employee_id: s for s in stubs}
    emily_stub = by_employee[employee.id]
    assert emily_stub.regular_hours == D(40)
    assert emily_stub.overtime_hours == D(2)
    assert emily_stub.gross_pay == D("860.00")
    assert by_employee[jake.id].gross_pay == D("480.00")

    assert pay_period.status == "processed"
    assert pay_period.employee_count == 2
    assert pay_period.total_gross_pay == D("1340.00")
    assert pay_period.total_net_pay == sum(s.net_pay for s in stubs)


@pytest.mark.asyncio
async def test_recalculate_replaces_stubs(db, worked_period):
    pay_period, _ = worked_period
    service = PayrollService(db)

    await service.calculate_pay_period(pay_period)
    await db.commit()
    stubs = await service.calculate_pay_period(pay_period)
    await db.commit()

    assert len(stubs) == 2


@pytest.mark.parametrize("status", ["synced", "paid"])
@pytest.mark.asyncio
async def test_locked_period_cannot_be_recalculated(db, worked_period, status):
    pay_period, _ = worked_period
    pay_period.status = status

    with pytest.raises(PayPeriodLockedError):
        await PayrollService(db).calculate_pay_period(pay_period)


@pytest.mark.asyncio
async def test_summarize(db, worked_period):
    pay_period, _ = worked_period

    summary = await PayrollService(db).summarize(pay_period)

    assert [e["display_name"] for e in summary["employees"]] == ["Emily Davis", "Jake Miller"]
    assert summary["total_regular_hours"] == D(70)
    assert summary["total_overtime_hours"] == D(2)
    assert summary["total_gross_pay"] == D("1340.00")
    assert summary["employer_social_security"] == D("83.08")
    assert summary["employer_medicare"] == D("19.43")
    assert summary["total_employer_taxes"] == D("102.51")
    assert pay_period.status == "draft"


@pytest.mark.asyncio
async def test_summarize_empty_period(db, pay_period):
    summary = await PayrollService(db).summarize(pay_period)
    assert summary["employees"] == []
    assert summary["total_gross_pay"] == 0


# ── Endpoints ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_calculate_endpoint_and_stubs(client, manager_token, worked_period):
    pay_period, _ = worked_period

    resp = await client.post(
        f"/api/v1/payroll/pay-periods/{pay_period.id}/calculate", headers=auth_headers(manager_token)
    )
    assert resp.status_code == 200
    assert len(resp.json()) == 2

    stubs = await client.get(
        "/api/v1/payroll/pay-stubs", params={"pay_period_id": str(pay_period.id)}, headers=auth_headers(manager_token)
    )
    assert stubs.status_code == 200
    assert len(stubs.json()) == 2

    stub_id = stubs.json()[0]["id"]
    one = await client.get(f"/api/v1/payroll/pay-stubs/{stub_id}", headers=auth_headers(manager_token))
    assert one.status_code == 200

    period = await client.get(f"/api/v1/pay-periods/{pay_period.id}", headers=auth_headers(manager_token))
    assert period.json()["status"] == "processed"
    assert D(period.json()["total_gross_pay"]) == D("1340.00")


@pytest.mark.asyncio
async def test_calculate_endpoint_locked(client, manager_token, worked_period, db):
    pay_period, _ = worked_period
    pay_period.status = "paid"
    await db.commit()

    resp = await client.post(
        f"/api/v1/payroll/pay-periods/{pay_period.id}/calculate", headers=auth_headers(manager_token)
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_summary_endpoint(client, manager_token, worked_period):
    pay_period, _ = worked_period
    resp = await client.get(
        f"/api/v1/payroll/pay-periods/{pay_period.id}/summary", headers=auth_headers(manager_token)
    )
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["employees"]) == 2
    assert D(data["total_employer_taxes"]) == D("102.51")


@pytest.mark.asyncio
async def test_pay_stub_pdf(client, manager_token, worked_period):
    pay_period, _ = worked_period
    await client.post(f"/api/v1/payroll/pay-periods/{pay_period.id}/calculate", headers=auth_headers(manager_token))
    stubs = await client.get(
        "/api/v1/payroll/pay-stubs", params={"pay_period_id": str(pay_period.id)}, headers=auth_headers(manager_token)
    )

    resp = await client.get(
        f"/api/v1/payroll/pay-stubs/{stubs.json()[0]['id']}/pdf", headers=auth_headers(manager_token)
    )

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")
    assert "pay-stub-" in resp.headers["content-disposition"]


@pytest.mark.asyncio
async def test_pay_stub_not_found(client, manager_token):
    import uuid
    resp = await client.get(f"/api/v1/payroll/pay-stubs/{uuid.uuid4()}", headers=auth_headers(manager_token))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_generate_pdf_without_overtime(employee, pay_period):
    from types import SimpleNamespace
    stub = SimpleNamespace(**calculate_earnings(D(10), D(0), D("20.00")))
    pdf = generate_pay_stub_pdf(stub, employee, pay_period, "Test Diner LLC")
    assert pdf[:4] == b"%PDF"
