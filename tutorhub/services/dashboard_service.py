# tutorhub/services/dashboard_service.py
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from tutorhub.models.account import AccountRole, AccountStatus
from tutorhub.models.order import OrderStatus
from tutorhub.models.report import MonthlyRevenue, TopPerformer

logger = logging.getLogger(__name__)

COMMISSION_RATE = Decimal("0.15")  # Nền tảng giữ 15% mỗi đơn hoàn tất
_CENTS = Decimal("0.01")


def commission_of(total) -> float:
    """15% của total, làm tròn 2 chữ số (ROUND_HALF_UP)."""
    value = Decimal(str(total)) * COMMISSION_RATE
    return float(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


class DashboardService:
    """Các truy vấn thống kê chỉ đọc cho trang quản trị."""

    def __init__(self, dbs):
        self.dbs = dbs

    def monthly_revenue(self, year: int) -> list:
        start_date = datetime(year, 1, 1)
        end_date = datetime(year + 1, 1, 1)

        revenue_data = self.dbs.orders.aggregate([
            {"$match": {
                "createdAt": {"$gte": start_date, "$lt": end_date},
                "status": OrderStatus.COMPLETED,
            }},
            {"$group": {
                "_id": {"$month": "$createdAt"},
                "totalRevenue": {"$sum": "$totalAmount"},
            }},
            {"$sort": {"_id": 1}},
        ])

        totals = {row["_id"]: row["totalRevenue"] for row in revenue_data}
        # Luôn đủ 12 tháng, tháng không có đơn = 0
        return [
            MonthlyRevenue(month, commission_of(totals.get(month, 0)))
            for month in range(1, 13)
        ]

    def account_status_stats(self, by_role: bool = False) -> dict:
        if not by_role:
            stats = self.dbs.accounts.aggregate([
                {"$group": {"_id": "$status", "count": {"$sum": 1}}},
            ])
            result = {status: 0 for status in AccountStatus.ALL}
            for stat in stats:
                if stat["_id"] in result:
                    result[stat["_id"]] = stat["count"]
            return result

        roles = (AccountRole.TUTOR, AccountRole.USER)
        stats = self.dbs.accounts.aggregate([
            {"$match": {"role": {"$in": list(roles)}}},
            {"$group": {
                "_id": {"role": "$role", "status": "$status"},
                "count": {"$sum": 1},
            }},
        ])
        result = {role: {status: 0 for status in AccountStatus.ALL} for role in roles}
        for stat in stats:
            role = stat["_id"].get("role")
            status = stat["_id"].get("status")
            if role in result and status in result[role]:
                result[role][status] = stat["count"]
        return result

    def course_status_stats(self) -> dict:
        stats = self.dbs.courses.aggregate([
            {"$group": {"_id": "$isActive", "count": {"$sum": 1}}},
        ])
        result = {"Active": 0, "Inactive": 0}
        for stat in stats:
            # isActive thiếu (null) coi như inactive
            key = "Active" if stat["_id"] is True else "Inactive"
            result[key] += stat["count"]
        return result

    def top_account(self):
        """
        Account có nhiều OrderDetail đã hoàn thành khóa học nhất.
        Hòa thì lấy _id nhỏ nhất (account tạo sớm nhất). None nếu chưa có ai.
        """
        rows = list(self.dbs.order_details.aggregate([
            {"$match": {"isFinishCourse": True}},
            {"$lookup": {
                "from": self.dbs.orders.name,
                "localField": "order",
                "foreignField": "_id",
                "as": "orderData",
            }},
            {"$unwind": "$orderData"},
            {"$group": {
                "_id": "$orderData.account",
                "completedCourses": {"$sum": 1},
            }},
            {"$sort": {"completedCourses": -1, "_id": 1}},
            {"$limit": 1},
            {"$lookup": {
                "from": self.dbs.accounts.name,
                "localField": "_id",
                "foreignField": "_id",
                "as": "accountData",
            }},
            {"$unwind": "$accountData"},
            {"$project": {
                "accountId": "$_id",
                "fullName": "$accountData.fullName",
                "email": "$accountData.email",
                "completedCourses": 1,
            }},
        ]))
        return TopPerformer.from_aggregate(rows[0]) if rows else None

    def top_tutor(self):
        """Tutor có nhiều học viên hoàn thành khóa học (của tutor đó) nhất."""
        rows = list(self.dbs.order_details.aggregate([
            {"$match": {"isFinishCourse": True}},
            {"$lookup": {
                "from": self.dbs.courses.name,
                "localField": "course",
                "foreignField": "_id",
                "as": "courseData",
            }},
            {"$unwind": "$courseData"},
            {"$group": {
                "_id": "$courseData.createdBy",
                "completedCourses": {"$sum": 1},
            }},
            {"$lookup": {
                "from": self.dbs.accounts.name,
                "localField": "_id",
                "foreignField": "_id",
                "as": "tutorData",
            }},
            {"$unwind": "$tutorData"},
            {"$match": {"tutorData.role": AccountRole.TUTOR}},
            {"$sort": {"completedCourses": -1, "_id": 1}},
            {"$limit": 1},
            {"$project": {
                "accountId": "$_id",
                "fullName": "$tutorData.fullName",
                "email": "$tutorData.email",
                "completedCourses": 1,
            }},
        ]))
        return TopPerformer.from_aggregate(rows[0]) if rows else None
