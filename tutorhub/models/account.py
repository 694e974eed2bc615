# tutorhub/models/account.py
# Account/Course thuộc các module khác; ở đây chỉ cần hằng số và bản tóm tắt để trả về.


class AccountRole:
    ADMIN = "Admin"
    TUTOR = "Tutor"
    USER = "User"


class AccountStatus:
    ACTIVE = "Active"
    INACTIVE = "Inactive"

    ALL = (ACTIVE, INACTIVE)


def account_summary(doc: dict):
    """fullName + email của account (tương đương populate("account", "fullName email"))."""
    if not doc:
        return None
    return {
        "_id": str(doc["_id"]),
        "fullName": doc.get("fullName"),
        "email": doc.get("email"),
    }


def course_summary(doc: dict):
    if not doc:
        return None
    return {
        "_id": str(doc["_id"]),
        "name": doc.get("name"),
        "price": doc.get("price"),
        "image": doc.get("image"),
    }
