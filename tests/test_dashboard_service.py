from datetime import datetime

import pytest
from bson import ObjectId

from conftest import insert_account, insert_course, insert_order, insert_order_detail
from tutorhub.services.dashboard_service import DashboardService, commission_of


@pytest.fixture
def service(dbs):
    return DashboardService(dbs)


# ------------------------------------------------------------- monthlyRevenue
def test_monthly_revenue_has_twelve_months_when_empty(service):
    revenue = [r.to_dict() for r in service.monthly_revenue(2025)]
    assert revenue == [{"month": m, "revenue": 0.0} for m in range(1, 13)]


def test_monthly_revenue_sums_completed_orders_in_year(service, dbs):
    buyer = insert_account(dbs)
    insert_order(dbs, buyer, 100000, created_at=datetime(2025, 1, 1, 0, 0, 0))
    insert_order(dbs, buyer, 200000, created_at=datetime(2025, 1, 31, 23, 59, 59))
    insert_order(dbs, buyer, 333, created_at=datetime(2025, 6, 10))
    insert_order(dbs, buyer, 50000, created_at=datetime(2025, 12, 31, 23, 59, 59))
    # Bị loại: chưa thanh toán, đã hủy, khác năm
    insert_order(dbs, buyer, 999999, status="Pending", created_at=datetime(2025, 2, 1))
    insert_order(dbs, buyer, 999999, status="Cancelled", created_at=datetime(2025, 2, 1))
    insert_order(dbs, buyer, 999999, created_at=datetime(2024, 12, 31, 23, 59, 59))
    insert_order(dbs, buyer, 999999, created_at=datetime(2026, 1, 1))

    revenue = {r.month: r.revenue for r in service.monthly_revenue(2025)}

    assert sorted(revenue) == list(range(1, 13))
    assert revenue[1] == 45000.0
    assert revenue[2] == 0
    assert revenue[6] == 49.95
    assert revenue[12] == 7500.0
    assert sum(revenue.values()) == pytest.approx(0.15 * (100000 + 200000 + 333 + 50000))


@pytest.mark.parametrize("total, expected", [
    (0, 0.0),
    (100000, 15000.0),
    (333, 49.95),
    (1001, 150.15),
    (1.5, 0.23),   # 0.225 -> 0.23 (half-up)
    (10.1, 1.52),  # 1.515 -> 1.52
])
def test_commission_rounding(total, expected):
    assert commission_of(total) == expected


# ---------------------------------------------------------- status breakdowns
def test_account_status_stats_defaults_missing_to_zero(service, dbs):
    insert_account(dbs, "A", status="Active")
    insert_account(dbs, "B", status="Active")

    assert service.account_status_stats() == {"Active": 2, "Inactive": 0}


def test_account_status_stats_by_role(service, dbs):
    insert_account(dbs, "Admin", role="Admin", status="Active")
    insert_account(dbs, "T1", role="Tutor", status="Active")
    insert_account(dbs, "T2", role="Tutor", status="Inactive")
    insert_account(dbs, "U1", role="User", status="Inactive")

    assert service.account_status_stats(by_role=True) == {
        "Tutor": {"Active": 1, "Inactive": 1},
        "User": {"Active": 0, "Inactive": 1},
    }


def test_account_status_stats_empty(service):
    assert service.account_status_stats() == {"Active": 0, "Inactive": 0}


def test_course_status_stats(service, dbs):
    tutor = insert_account(dbs, role="Tutor")
    insert_course(dbs, tutor, name="A", is_active=True)
    insert_course(dbs, tutor, name="B", is_active=True)
    insert_course(dbs, tutor, name="C", is_active=False)

    assert service.course_status_stats() == {"Active": 2, "Inactive": 1}


def test_course_status_stats_empty(service):
    assert service.course_status_stats() == {"Active": 0, "Inactive": 0}


# --------------------------------------------------------------- top performer
def _enroll(dbs, buyer, course, finished):
    order = insert_order(dbs, buyer, 100000)
    insert_order_detail(dbs, order, course, finished=finished)


def test_top_account_is_none_without_finished_courses(service, dbs):
    tutor = insert_account(dbs, "Tutor", role="Tutor")
    course = insert_course(dbs, tutor)
    _enroll(dbs, insert_account(dbs, "Buyer"), course, finished=False)

    assert service.top_account() is None
    assert service.top_tutor() is None


def test_top_account_counts_finished_courses(service, dbs):
    tutor = insert_account(dbs, "Tutor", role="Tutor")
    course = insert_course(dbs, tutor)
    alice = insert_account(dbs, "Alice")
    bob = insert_account(dbs, "Bob")
    _enroll(dbs, alice, course, finished=True)
    _enroll(dbs, bob, course, finished=True)
    _enroll(dbs, bob, course, finished=True)
    _enroll(dbs, alice, course, finished=False)

    top = service.top_account().to_dict()

    assert top["accountId"] == str(bob)
    assert top["fullName"] == "Bob"
    assert top["completedCourses"] == 2


def test_top_account_tie_breaks_on_smallest_id(service, dbs):
    tutor = insert_account(dbs, "Tutor", role="Tutor")
    course = insert_course(dbs, tutor)
    first = ObjectId("000000000000000000000001")
    second = ObjectId("000000000000000000000002")
    insert_account(dbs, "Second", _id=second)
    insert_account(dbs, "First", _id=first)
    _enroll(dbs, second, course, finished=True)
    _enroll(dbs, first, course, finished=True)

    assert service.top_account().account_id == first


def test_top_tutor_only_counts_tutor_creators(service, dbs):
    tutor_a = insert_account(dbs, "Tutor A", role="Tutor")
    tutor_b = insert_account(dbs, "Tutor B", role="Tutor")
    admin = insert_account(dbs, "Admin", role="Admin")
    course_a = insert_course(dbs, tutor_a, name="A")
    course_b = insert_course(dbs, tutor_b, name="B")
    admin_course = insert_course(dbs, admin, name="Admin course")
    buyer = insert_account(dbs, "Buyer")

    _enroll(dbs, buyer, course_a, finished=True)
    _enroll(dbs, buyer, course_b, finished=True)
    _enroll(dbs, buyer, course_b, finished=True)
    for _ in range(5):
        _enroll(dbs, buyer, admin_course, finished=True)

    top = service.top_tutor().to_dict()

    assert top["accountId"] == str(tutor_b)
    assert top["fullName"] == "Tutor B"
    assert top["completedCourses"] == 2
