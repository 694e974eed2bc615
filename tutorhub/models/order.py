# tutorhub/models/order.py
from datetime import datetime

from bson.objectid import ObjectId
from bson.errors import InvalidId


class OrderStatus:
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    ALL = (PENDING, COMPLETED, CANCELLED)
    # Không chuyển trạng thái ra khỏi các trạng thái này
    TERMINAL = (COMPLETED, CANCELLED)


class PaymentMethodName:
    VNPAY = "VNPay"
    MOMO = "Momo"

    ALL = (VNPAY, MOMO)


def _to_oid(value, field=""):
    if value is None or isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValueError(f"{field or 'ObjectId'} không hợp lệ: {value}")


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else value


def _str_id(value):
    return str(value) if value is not None else None


class Order:
    """
    Đơn hàng (collection 'orders'). totalAmount được tính một lần lúc tạo
    và là số tiền chuẩn cho mọi bước sau.
    """

    def __init__(
        self,
        account_id,
        payment_method_id,
        total_amount,
        status: str = OrderStatus.PENDING,
        created_at: datetime = None,
        updated_at: datetime = None,
        order_id=None,
    ):
        if status not in OrderStatus.ALL:
            raise ValueError(f"status không hợp lệ: {status}")

        self.id = _to_oid(order_id, field="order_id")
        self.account_id = _to_oid(account_id, field="account_id")
        self.payment_method_id = _to_oid(payment_method_id, field="payment_method_id")
        self.total_amount = total_amount
        self.status = status
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or self.created_at

    @classmethod
    def from_mongo_doc(cls, doc: dict) -> "Order":
        return cls(
            account_id=doc.get("account"),
            payment_method_id=doc.get("paymentMethod"),
            total_amount=doc.get("totalAmount", 0),
            status=doc.get("status", OrderStatus.PENDING),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
            order_id=doc.get("_id"),
        )

    def to_mongo_doc(self) -> dict:
        doc = {
            "account": self.account_id,
            "paymentMethod": self.payment_method_id,
            "totalAmount": self.total_amount,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.id:
            doc["_id"] = self.id
        return doc

    def to_dict(self) -> dict:
        return {
            "_id": _str_id(self.id),
            "account": _str_id(self.account_id),
            "paymentMethod": _str_id(self.payment_method_id),
            "totalAmount": self.total_amount,
            "status": self.status,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class OrderDetail:
    """Một dòng của đơn hàng: khóa học đã mua + giá chốt tại thời điểm mua."""

    def __init__(
        self,
        order_id,
        course_id,
        quantity: int,
        price,
        is_finish_course: bool = False,
        time_finish_course: datetime = None,
        certificate_of_completion: str = None,
        created_at: datetime = None,
        updated_at: datetime = None,
        detail_id=None,
    ):
        self.id = _to_oid(detail_id, field="detail_id")
        self.order_id = _to_oid(order_id, field="order_id")
        self.course_id = _to_oid(course_id, field="course_id")
        self.quantity = quantity
        self.price = price
        self.is_finish_course = bool(is_finish_course)
        self.time_finish_course = time_finish_course
        self.certificate_of_completion = certificate_of_completion
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or self.created_at

    @classmethod
    def from_mongo_doc(cls, doc: dict) -> "OrderDetail":
        return cls(
            order_id=doc.get("order"),
            course_id=doc.get("course"),
            quantity=doc.get("quantity", 1),
            price=doc.get("price", 0),
            is_finish_course=doc.get("isFinishCourse", False),
            time_finish_course=doc.get("timeFinishCourse"),
            certificate_of_completion=doc.get("certificateOfCompletion"),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
            detail_id=doc.get("_id"),
        )

    def to_mongo_doc(self) -> dict:
        doc = {
            "order": self.order_id,
            "course": self.course_id,
            "quantity": self.quantity,
            "price": self.price,
            "isFinishCourse": self.is_finish_course,
            "timeFinishCourse": self.time_finish_course,
            "certificateOfCompletion": self.certificate_of_completion,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.id:
            doc["_id"] = self.id
        return doc

    def completion_dict(self) -> dict:
        return {
            "orderDetailId": _str_id(self.id),
            "isFinishCourse": self.is_finish_course,
            "timeFinishCourse": _iso(self.time_finish_course),
            "certificateOfCompletion": self.certificate_of_completion,
        }
