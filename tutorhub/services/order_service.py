# tutorhub/services/order_service.py
import logging
from datetime import datetime

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from tutorhub.models.account import account_summary, course_summary
from tutorhub.models.order import Order, OrderDetail, OrderStatus, PaymentMethodName
from tutorhub.services.vnpay_service import to_minor_units
from tutorhub.utils.errors import BadRequestError, InternalError, NotFoundError
from tutorhub.utils.validation import validate_object_id

logger = logging.getLogger(__name__)

ORDER_QUANTITY = 1  # Mỗi đơn chỉ mua một khóa học

_TERMINAL_MESSAGES = {
    OrderStatus.COMPLETED: "Order is already paid",
    OrderStatus.CANCELLED: "Order is already cancelled",
}


class OrderService:
    """
    Tạo đơn hàng + chi tiết đơn, ký URL VNPay và chuyển trạng thái đơn.

    Mọi chuyển trạng thái đi qua một lệnh find_one_and_update có điều kiện
    status == Pending, nên hai request đồng thời chỉ có một bên thành công.
    """

    def __init__(self, dbs, vnpay):
        self.dbs = dbs
        self.vnpay = vnpay

    # ----------------------------------------------------------------- create
    def create_order(self, course_id, account_id, client_ip: str = None) -> dict:
        if not course_id or not account_id:
            raise BadRequestError("Course ID and account ID are required")

        course_oid = validate_object_id(course_id, "course ID")
        account_oid = validate_object_id(account_id, "account ID")

        course = self.dbs.courses.find_one({"_id": course_oid})
        if not course or course.get("isActive") is not True:
            raise NotFoundError("Course not found or inactive")

        if not self.dbs.accounts.find_one({"_id": account_oid}, {"_id": 1}):
            raise NotFoundError("Account not found")

        price = course.get("price")
        try:
            if isinstance(price, bool) or not isinstance(price, (int, float)):
                raise ValueError(f"price phải là số: {price!r}")
            to_minor_units(price)
        except ValueError as e:
            logger.error("Course %s có giá không hợp lệ: %s", course_oid, e)
            raise BadRequestError("Invalid course price")
        total_amount = price * ORDER_QUANTITY

        payment_method_id = self._resolve_payment_method(PaymentMethodName.VNPAY)

        order = Order(
            account_id=account_oid,
            payment_method_id=payment_method_id,
            total_amount=total_amount,
            status=OrderStatus.PENDING,
        )
        order.id = self.dbs.orders.insert_one(order.to_mongo_doc()).inserted_id

        detail = OrderDetail(
            order_id=order.id,
            course_id=course_oid,
            quantity=ORDER_QUANTITY,
            price=price,
            is_finish_course=False,
        )
        try:
            self.dbs.order_details.insert_one(detail.to_mongo_doc())
        except PyMongoError:
            logger.exception("Tạo OrderDetail thất bại cho order %s, xóa order mồ côi", order.id)
            self._discard_order(order.id)
            raise InternalError("Failed to create order")

        url = self.vnpay.create_payment_url(
            order_id=order.id,
            amount=total_amount,
            course_name=course.get("name", ""),
            ip_address=client_ip,
        )
        logger.info("Order %s created by account %s (totalAmount=%s)", order.id, account_oid, total_amount)
        return {"orderId": str(order.id), "url": url}

    def _resolve_payment_method(self, name: str):
        """Upsert theo unique index trên name: mỗi phương thức chỉ có một document."""
        try:
            doc = self.dbs.payment_methods.find_one_and_update(
                {"name": name},
                {"$setOnInsert": {"name": name}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # Request khác vừa tạo cùng lúc
            doc = self.dbs.payment_methods.find_one({"name": name})
        return doc["_id"]

    def _discard_order(self, order_id):
        try:
            self.dbs.orders.delete_one({"_id": order_id})
        except PyMongoError:
            logger.exception("Không xóa được order mồ côi %s", order_id)

    # ------------------------------------------------------------ transitions
    def _transition(self, order_filter: dict, target_status: str) -> dict:
        updated = self.dbs.orders.find_one_and_update(
            {**order_filter, "status": OrderStatus.PENDING},
            {"$set": {"status": target_status, "updatedAt": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated:
            logger.info("Order %s: %s -> %s", updated["_id"], OrderStatus.PENDING, target_status)
            return updated

        existing = self.dbs.orders.find_one(order_filter, {"status": 1})
        if not existing:
            raise NotFoundError("Order not found or unauthorized")

        status = existing.get("status")
        logger.warning("Order %s: bỏ qua chuyển %s -> %s", existing["_id"], status, target_status)
        raise BadRequestError(_TERMINAL_MESSAGES.get(status, f"Order cannot be updated from status {status}"))

    def update_order_status(self, order_id, account_id) -> dict:
        if not order_id:
            raise BadRequestError("Order ID is required")

        order_oid = validate_object_id(order_id, "order ID")
        account_oid = validate_object_id(account_id, "account ID")

        # Không phân biệt "không tồn tại" và "không phải chủ đơn"
        self._transition({"_id": order_oid, "account": account_oid}, OrderStatus.COMPLETED)
        return {"orderId": str(order_oid)}

    def cancel_order(self, order_id, account_id) -> dict:
        if not order_id:
            raise BadRequestError("Order ID is required")

        order_oid = validate_object_id(order_id, "order ID")
        account_oid = validate_object_id(account_id, "account ID")

        self._transition({"_id": order_oid, "account": account_oid}, OrderStatus.CANCELLED)
        return {"orderId": str(order_oid)}

    def confirm_gateway_return(self, params: dict) -> dict:
        """
        Xử lý query VNPay redirect về: kiểm tra chữ ký, số tiền, rồi
        Pending -> Completed (vnp_ResponseCode == "00") hoặc Pending -> Cancelled.
        """
        if not self.vnpay.verify_return(params):
            logger.warning("VNPay return có chữ ký không hợp lệ (TxnRef=%s)", params.get("vnp_TxnRef"))
            raise BadRequestError("Invalid signature")

        order_oid = validate_object_id(params.get("vnp_TxnRef"), "order ID")
        order = self.dbs.orders.find_one({"_id": order_oid})
        if not order:
            raise NotFoundError("Order not found")

        try:
            paid_amount = int(params.get("vnp_Amount"))
        except (TypeError, ValueError):
            raise BadRequestError("Invalid amount")

        if paid_amount != to_minor_units(order.get("totalAmount", 0)):
            logger.warning("Order %s: vnp_Amount=%s không khớp totalAmount=%s",
                           order_oid, paid_amount, order.get("totalAmount"))
            raise BadRequestError("Amount mismatch")

        succeeded = (
            params.get("vnp_ResponseCode") == "00"
            and params.get("vnp_TransactionStatus", "00") == "00"
        )
        target = OrderStatus.COMPLETED if succeeded else OrderStatus.CANCELLED
        self._transition({"_id": order_oid}, target)
        return {"orderId": str(order_oid), "status": target}

    # ------------------------------------------------------------------- read
    def get_orders_by_account(self, account_id) -> list:
        if not account_id:
            raise BadRequestError("Account ID is required")

        account_oid = validate_object_id(account_id, "account ID")

        orders = [
            Order.from_mongo_doc(doc)
            for doc in self.dbs.orders.find({"account": account_oid}).sort("createdAt", -1)
        ]
        if not orders:
            return []

        details_by_order = {}
        for doc in self.dbs.order_details.find({"order": {"$in": [o.id for o in orders]}}).sort("_id", 1):
            details_by_order.setdefault(doc["order"], []).append(OrderDetail.from_mongo_doc(doc))

        course_ids = list({d.course_id for details in details_by_order.values() for d in details})
        courses = {
            c["_id"]: c
            for c in self.dbs.courses.find({"_id": {"$in": course_ids}}, {"name": 1, "price": 1, "image": 1})
        }
        payment_methods = {
            pm["_id"]: pm
            for pm in self.dbs.payment_methods.find({"_id": {"$in": list({o.payment_method_id for o in orders})}})
        }
        account = account_summary(self.dbs.accounts.find_one({"_id": account_oid}, {"fullName": 1, "email": 1}))

        result = []
        for order in orders:
            item = order.to_dict()
            pm = payment_methods.get(order.payment_method_id)
            item["paymentMethod"] = {"_id": str(pm["_id"]), "name": pm.get("name")} if pm else None
            item["account"] = account
            item["orderDetails"] = [
                {
                    "course": course_summary(courses.get(detail.course_id)),
                    "quantity": detail.quantity,
                    "price": detail.price,
                    "isFinishCourse": detail.is_finish_course,
                    "timeFinishCourse": detail.completion_dict()["timeFinishCourse"],
                    "certificateOfCompletion": detail.certificate_of_completion,
                }
                for detail in details_by_order.get(order.id, [])
            ]
            result.append(item)
        return result
