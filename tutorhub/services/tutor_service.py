# tutorhub/services/tutor_service.py
import logging
from datetime import datetime

from pymongo import ReturnDocument

from tutorhub.models.order import OrderDetail
from tutorhub.utils.errors import ForbiddenError, NotFoundError
from tutorhub.utils.validation import validate_object_id, validate_url

logger = logging.getLogger(__name__)


class TutorService:
    def __init__(self, dbs):
        self.dbs = dbs

    def get_tutor_order_details(self, tutor_id) -> list:
        """Tất cả OrderDetail thuộc các khóa học do tutor tạo."""
        tutor_oid = validate_object_id(tutor_id, "tutor ID")

        courses = {
            c["_id"]: c
            for c in self.dbs.courses.find({"createdBy": tutor_oid}, {"name": 1, "price": 1})
        }
        if not courses:
            return []

        details = [
            OrderDetail.from_mongo_doc(doc)
            for doc in self.dbs.order_details.find({"course": {"$in": list(courses)}}).sort("createdAt", -1)
        ]

        orders = {
            o["_id"]: o
            for o in self.dbs.orders.find(
                {"_id": {"$in": list({d.order_id for d in details})}},
                {"account": 1, "totalAmount": 1, "status": 1}
            )
        }
        accounts = {
            a["_id"]: a
            for a in self.dbs.accounts.find(
                {"_id": {"$in": list({o.get("account") for o in orders.values()})}},
                {"fullName": 1, "email": 1}
            )
        }

        result = []
        for detail in details:
            course = courses[detail.course_id]
            order = orders.get(detail.order_id) or {}
            buyer = accounts.get(order.get("account")) or {}
            item = detail.completion_dict()
            item.update({
                "courseName": course.get("name"),
                "coursePrice": course.get("price"),
                "quantity": detail.quantity,
                "price": detail.price,
                "order": {
                    "account": {
                        "fullName": buyer.get("fullName"),
                        "email": buyer.get("email"),
                    },
                    "totalAmount": order.get("totalAmount"),
                    "status": order.get("status"),
                },
                "createdAt": detail.created_at.isoformat() if detail.created_at else None,
                "updatedAt": detail.updated_at.isoformat() if detail.updated_at else None,
            })
            result.append(item)
        return result

    def complete_course(self, order_detail_id, tutor_id, certificate_url) -> dict:
        """Tutor xác nhận học viên đã hoàn thành khóa học và gắn link chứng chỉ."""
        detail_oid = validate_object_id(order_detail_id, "orderDetailId")
        tutor_oid = validate_object_id(tutor_id, "tutor ID")
        certificate_url = validate_url(certificate_url, "certificateUrl")

        detail = self.dbs.order_details.find_one({"_id": detail_oid}, {"course": 1})
        if not detail:
            raise NotFoundError("OrderDetail not found")

        course = self.dbs.courses.find_one({"_id": detail.get("course")}, {"createdBy": 1})
        if not course:
            raise NotFoundError("Course not found")

        if course.get("createdBy") != tutor_oid:
            raise ForbiddenError("Unauthorized: You are not the creator of this course")

        now = datetime.utcnow()
        updated = self.dbs.order_details.find_one_and_update(
            {"_id": detail_oid},
            {"$set": {
                "isFinishCourse": True,
                "timeFinishCourse": now,
                "certificateOfCompletion": certificate_url,
                "updatedAt": now,
            }},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("OrderDetail not found")

        logger.info("OrderDetail %s hoàn thành bởi tutor %s", detail_oid, tutor_oid)
        return OrderDetail.from_mongo_doc(updated).completion_dict()
