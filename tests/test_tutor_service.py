import pytest
from bson import ObjectId

from conftest import insert_account, insert_course, insert_order, insert_order_detail
from tutorhub.services.tutor_service import TutorService
from tutorhub.utils.errors import BadRequestError, ForbiddenError, NotFoundError

CERT_URL = "https://cdn.example.com/certificates/abc.png"


@pytest.fixture
def service(dbs):
    return TutorService(dbs)


@pytest.fixture
def setup(dbs):
    tutor = insert_account(dbs, "Tutor", role="Tutor")
    buyer = insert_account(dbs, "Buyer", email="buyer@example.com")
    course = insert_course(dbs, tutor, name="Intro to Go", price=100000)
    order = insert_order(dbs, buyer, 100000, status="Completed")
    detail = insert_order_detail(dbs, order, course)
    return {"tutor": tutor, "buyer": buyer, "course": course, "order": order, "detail": detail}


def test_get_tutor_order_details(service, dbs, setup):
    other_tutor = insert_account(dbs, "Other", role="Tutor")
    other_course = insert_course(dbs, other_tutor, name="Other course")
    insert_order_detail(dbs, setup["order"], other_course)

    details = service.get_tutor_order_details(setup["tutor"])

    assert len(details) == 1
    item = details[0]
    assert item["orderDetailId"] == str(setup["detail"])
    assert item["courseName"] == "Intro to Go"
    assert item["coursePrice"] == 100000
    assert item["price"] == 100000
    assert item["isFinishCourse"] is False
    assert item["order"] == {
        "account": {"fullName": "Buyer", "email": "buyer@example.com"},
        "totalAmount": 100000,
        "status": "Completed",
    }


def test_get_tutor_order_details_without_courses(service, dbs):
    tutor = insert_account(dbs, "Lonely", role="Tutor")
    assert service.get_tutor_order_details(tutor) == []


def test_complete_course_marks_detail_finished(service, dbs, setup):
    result = service.complete_course(str(setup["detail"]), setup["tutor"], CERT_URL)

    assert result["orderDetailId"] == str(setup["detail"])
    assert result["isFinishCourse"] is True
    assert result["certificateOfCompletion"] == CERT_URL
    assert result["timeFinishCourse"] is not None

    stored = dbs.order_details.find_one({"_id": setup["detail"]})
    assert stored["isFinishCourse"] is True
    assert stored["certificateOfCompletion"] == CERT_URL


def test_complete_course_by_other_tutor_is_forbidden(service, dbs, setup):
    intruder = insert_account(dbs, "Intruder", role="Tutor")

    with pytest.raises(ForbiddenError):
        service.complete_course(str(setup["detail"]), intruder, CERT_URL)

    assert dbs.order_details.find_one({"_id": setup["detail"]})["isFinishCourse"] is False


def test_complete_course_missing_detail(service, setup):
    with pytest.raises(NotFoundError):
        service.complete_course(str(ObjectId()), setup["tutor"], CERT_URL)


@pytest.mark.parametrize("url", [None, "", "not a url", "ftp://cdn.example.com/x.png"])
def test_complete_course_rejects_bad_certificate_url(service, setup, url):
    with pytest.raises(BadRequestError):
        service.complete_course(str(setup["detail"]), setup["tutor"], url)


def test_complete_course_rejects_malformed_id(service, setup):
    with pytest.raises(BadRequestError):
        service.complete_course("123", setup["tutor"], CERT_URL)
