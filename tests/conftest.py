from datetime import datetime

import mongomock
import pytest
from bson import ObjectId

from tutorhub import create_app
from tutorhub.services.mongo_service import Collections
from tutorhub.services.vnpay_service import VNPayService
from tutorhub.utils.auth import generate_jwt

TEST_CONFIG = {
    "TESTING": True,
    "JWT_KEY": "test-jwt-key-with-enough-length-32b",
    "FLASK_SECRET_KEY": "test-secret",
    "VNPAY_TMN_CODE": "TESTCODE",
    "VNPAY_HASH_SECRET": "TESTSECRETTESTSECRETTESTSECRET12",
    "VNPAY_URL": "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html",
    "VNPAY_RETURN_URL": "http://localhost:3000",
    "DATABASE_NAME": "tutorhub_test",
    "RATELIMIT_ENABLED": False,
}


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def dbs(mongo_client):
    return Collections(mongo_client, TEST_CONFIG["DATABASE_NAME"])


@pytest.fixture
def vnpay():
    return VNPayService.from_config(TEST_CONFIG)


@pytest.fixture
def app(mongo_client):
    return create_app(config=TEST_CONFIG, mongo_client=mongo_client)


@pytest.fixture
def app_dbs(app):
    return app.extensions["mongo"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(app):
    def _make(account_id, role="User"):
        with app.app_context():
            token = generate_jwt(account_id, role)
        return {"Authorization": f"Bearer {token}"}
    return _make


def insert_account(dbs, full_name="Nguyen Van A", role="User", status="Active", **extra):
    doc = {
        "fullName": full_name,
        "email": f"{ObjectId()}@example.com",
        "phone": str(ObjectId())[-10:],
        "balance": 0,
        "role": role,
        "status": status,
        "createdAt": datetime(2024, 1, 1),
        "updatedAt": datetime(2024, 1, 1),
    }
    doc.update(extra)
    return dbs.accounts.insert_one(doc).inserted_id


def insert_course(dbs, creator_id, name="Intro to Go", price=100000, is_active=True, **extra):
    doc = {
        "name": name,
        "description": "Course description",
        "image": "https://cdn.example.com/course.png",
        "price": price,
        "createdBy": creator_id,
        "isActive": is_active,
        "createdAt": datetime(2024, 1, 1),
        "updatedAt": datetime(2024, 1, 1),
    }
    doc.update(extra)
    return dbs.courses.insert_one(doc).inserted_id


def insert_order(dbs, account_id, total_amount, status="Completed", created_at=None, payment_method_id=None):
    return dbs.orders.insert_one({
        "account": account_id,
        "paymentMethod": payment_method_id or ObjectId(),
        "totalAmount": total_amount,
        "status": status,
        "createdAt": created_at or datetime(2025, 1, 15),
        "updatedAt": created_at or datetime(2025, 1, 15),
    }).inserted_id


def insert_order_detail(dbs, order_id, course_id, price=100000, finished=False):
    return dbs.order_details.insert_one({
        "order": order_id,
        "course": course_id,
        "quantity": 1,
        "price": price,
        "isFinishCourse": finished,
        "timeFinishCourse": datetime(2025, 2, 1) if finished else None,
        "certificateOfCompletion": "https://cdn.example.com/cert.png" if finished else None,
        "createdAt": datetime(2025, 1, 15),
        "updatedAt": datetime(2025, 1, 15),
    }).inserted_id
