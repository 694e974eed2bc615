# tutorhub/models/report.py
# Kết quả trả về của dashboard, tách khỏi document Mongo.


class MonthlyRevenue:
    def __init__(self, month: int, revenue: float):
        self.month = month
        self.revenue = revenue

    def to_dict(self):
        return {"month": self.month, "revenue": self.revenue}


class TopPerformer:
    def __init__(self, account_id, full_name: str, email: str, completed_courses: int):
        self.account_id = account_id
        self.full_name = full_name
        self.email = email
        self.completed_courses = completed_courses

    @classmethod
    def from_aggregate(cls, row: dict) -> "TopPerformer":
        return cls(
            account_id=row.get("accountId"),
            full_name=row.get("fullName"),
            email=row.get("email"),
            completed_courses=int(row.get("completedCourses", 0)),
        )

    def to_dict(self):
        return {
            "accountId": str(self.account_id),
            "fullName": self.full_name,
            "email": self.email,
            "completedCourses": self.completed_courses,
        }
