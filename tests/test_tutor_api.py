from conftest import insert_account, insert_course, insert_order, insert_order_detail

CERT_URL = "https://cdn.example.com/certificates/abc.png"


def _setup(app_dbs):
    tutor = insert_account(app_dbs, "Tutor", role="Tutor")
    buyer = insert_account(app_dbs, "Buyer")
    course = insert_course(app_dbs, tutor)
    order = insert_order(app_dbs, buyer, 100000)
    detail = insert_order_detail(app_dbs, order, course)
    return tutor, buyer, detail


def test_tutor_routes_require_tutor_role(client, app_dbs, auth_header):
    _, buyer, _ = _setup(app_dbs)

    res = client.get("/api/tutor/order-details", headers=auth_header(buyer, role="User"))

    assert res.status_code == 403


def test_list_and_complete(client, app_dbs, auth_header):
    tutor, _, detail = _setup(app_dbs)
    headers = auth_header(tutor, role="Tutor")

    listed = client.get("/api/tutor/order-details", headers=headers)
    assert listed.status_code == 200
    assert [d["orderDetailId"] for d in listed.get_json()] == [str(detail)]

    res = client.patch(f"/api/tutor/complete-course/{detail}", json={"certificateUrl": CERT_URL}, headers=headers)

    assert res.status_code == 200
    assert res.get_json()["isFinishCourse"] is True
    assert app_dbs.order_details.find_one({"_id": detail})["certificateOfCompletion"] == CERT_URL


def test_complete_requires_certificate(client, app_dbs, auth_header):
    tutor, _, detail = _setup(app_dbs)

    res = client.patch(f"/api/tutor/complete-course/{detail}", json={}, headers=auth_header(tutor, role="Tutor"))

    assert res.status_code == 400
    assert res.get_json() == {"status": 400, "message": "certificateUrl is required"}
