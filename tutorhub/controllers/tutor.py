# tutorhub/controllers/tutor.py
from flask import Blueprint, g, jsonify, request

from tutorhub.models.account import AccountRole
from tutorhub.services.mongo_service import get_collections
from tutorhub.services.tutor_service import TutorService
from tutorhub.utils.auth import require_auth, require_role

tutor_bp = Blueprint('tutor', __name__, url_prefix='/api/tutor')


@tutor_bp.get('/order-details')
@require_auth
@require_role(AccountRole.TUTOR)
def tutor_order_details():
    """
    Các lượt mua khóa học của tutor hiện tại.
    ---
    tags:
      - Tutor
    security:
      - Bearer: []
    responses:
      200:
        description: Danh sách order detail kèm người mua và trạng thái đơn.
      403:
        description: Không phải Tutor.
    """
    details = TutorService(get_collections()).get_tutor_order_details(g.account_id)
    return jsonify(details), 200


@tutor_bp.patch('/complete-course/<order_detail_id>')
@require_auth
@require_role(AccountRole.TUTOR)
def complete_course(order_detail_id):
    """
    Đánh dấu học viên hoàn thành khóa học, kèm URL chứng chỉ.
    ---
    tags:
      - Tutor
    security:
      - Bearer: []
    parameters:
      - in: path
        name: order_detail_id
        required: true
        type: string
      - in: body
        name: body
        required: true
        schema:
          id: CompleteCourse
          required:
            - certificateUrl
          properties:
            certificateUrl:
              type: string
    responses:
      200:
        description: OrderDetail sau khi cập nhật.
      400:
        description: orderDetailId hoặc certificateUrl không hợp lệ.
      403:
        description: Không phải tutor tạo khóa học.
      404:
        description: Không tìm thấy OrderDetail/Course.
    """
    body = request.get_json(silent=True) or {}
    result = TutorService(get_collections()).complete_course(
        order_detail_id, g.account_id, body.get("certificateUrl")
    )
    return jsonify(result), 200
