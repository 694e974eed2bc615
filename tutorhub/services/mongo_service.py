# tutorhub/services/mongo_service.py
import logging

from flask import current_app
from pymongo import ASCENDING, DESCENDING, MongoClient

logger = logging.getLogger(__name__)


class Collections:
    def __init__(self, client: MongoClient, database_name: str):
        logger.info("Đang kết nối MongoDB (database=%s)...", database_name)
        self.client = client
        self.db = self.client[database_name]

        # Collections
        self.accounts = self.db["accounts"]
        self.courses = self.db["courses"]
        self.payment_methods = self.db["paymentmethods"]
        self.orders = self.db["orders"]
        self.order_details = self.db["orderdetails"]

        self._ensure_indexes()
        logger.info("Kết nối MongoDB thành công và Index đã được kiểm tra.")

    def _ensure_indexes(self):
        # Unique index cho paymentmethods.name: mỗi phương thức chỉ có một document
        if "ix_payment_methods_name" not in self.payment_methods.index_information():
            self.payment_methods.create_index([("name", ASCENDING)], unique=True, name="ix_payment_methods_name")

        if "ix_orders_account" not in self.orders.index_information():
            self.orders.create_index([("account", ASCENDING), ("createdAt", DESCENDING)], name="ix_orders_account")
        if "ix_orders_status" not in self.orders.index_information():
            self.orders.create_index([("status", ASCENDING), ("createdAt", ASCENDING)], name="ix_orders_status")

        if "ix_order_details_order" not in self.order_details.index_information():
            self.order_details.create_index([("order", ASCENDING)], name="ix_order_details_order")
        if "ix_order_details_course" not in self.order_details.index_information():
            self.order_details.create_index(
                [("course", ASCENDING), ("isFinishCourse", ASCENDING)],
                name="ix_order_details_course"
            )

        if "ix_courses_creator" not in self.courses.index_information():
            self.courses.create_index([("createdBy", ASCENDING)], name="ix_courses_creator")

    def close(self):
        self.client.close()
        logger.info("Đã đóng kết nối MongoDB.")


def init_mongo(app, client: MongoClient = None) -> Collections:
    """Tạo Collections một lần cho app; client có thể được inject (tests)."""
    if client is None:
        uri = app.config.get("MONGO_CONNECTION_STRING")
        if not uri:
            raise ValueError("MONGO_CONNECTION_STRING chưa được cấu hình trong .env")
        client = MongoClient(uri, tz_aware=False)

    collections = Collections(client, app.config["DATABASE_NAME"])
    app.extensions["mongo"] = collections
    return collections


def get_collections() -> Collections:
    return current_app.extensions["mongo"]
