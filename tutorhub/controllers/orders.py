# tutorhub/controllers/orders.py
from flask import Blueprint, current_app, g, jsonify, request

from tutorhub import limiter
from tutorhub.services.mongo_service import get_collections
from tutorhub.services.order_service import OrderService
from tutorhub.services.vnpay_service import DEFAULT_IP_ADDRESS, VNPayService
from tutorhub.utils.auth import require_auth

orders_bp = Blueprint('orders', __name__, url_prefix='/api/orders')


def _order_service() -> OrderService:
    return OrderService(get_collections(), VNPayService.from_config(current_app.config))


def _client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or DEFAULT_IP_ADDRESS


def _ok(message, data):
    return jsonify({"status": 200, "message": message, "data": data}), 200


@orders_bp.post('')
@limiter.limit("10 per minute")
@require_auth
def create_order():
    """
    Tạo đơn hàng cho một khóa học và trả về URL thanh toán VNPay.
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          id: CreateOrder
          required:
            - courseId
          properties:
            courseId:
              type: string
              description: MongoDB ObjectId của khóa học.
    responses:
      200:
        description: Tạo đơn thành công, data gồm orderId và url.
      400:
        description: Thiếu hoặc sai courseId.
      401:
        description: Token không hợp lệ.
      403:
        description: Thiếu token.
      404:
        description: Khóa học không tồn tại/đã ẩn hoặc account không tồn tại.
    """
    body = request.get_json(silent=True) or {}
    result = _order_service().create_order(
        course_id=body.get("courseId"),
        account_id=g.account_id,
        client_ip=_client_ip(),
    )
    return _ok("Order created successfully", result)


@orders_bp.patch('/<order_id>/pay')
@require_auth
def update_order_status(order_id):
    """
    Xác nhận đơn đã thanh toán (Pending -> Completed).
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - in: path
        name: order_id
        required: true
        type: string
    responses:
      200:
        description: Đã cập nhật trạng thái.
      400:
        description: Đơn đã thanh toán hoặc đã hủy.
      404:
        description: Không tìm thấy đơn hoặc đơn không thuộc về user.
    """
    result = _order_service().update_order_status(order_id, g.account_id)
    return _ok("Order status updated to Paid successfully", result)


@orders_bp.patch('/<order_id>/cancel')
@require_auth
def cancel_order(order_id):
    """
    Hủy đơn đang Pending của chính mình (Pending -> Cancelled).
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - in: path
        name: order_id
        required: true
        type: string
    responses:
      200:
        description: Đã hủy đơn.
      400:
        description: Đơn đã thanh toán hoặc đã hủy.
      404:
        description: Không tìm thấy đơn hoặc đơn không thuộc về user.
    """
    result = _order_service().cancel_order(order_id, g.account_id)
    return _ok("Order cancelled successfully", result)


@orders_bp.get('')
@require_auth
def get_orders():
    """
    Danh sách đơn hàng của user hiện tại (mới nhất trước).
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    responses:
      200:
        description: Danh sách đơn kèm chi tiết và khóa học.
    """
    result = _order_service().get_orders_by_account(g.account_id)
    return _ok("Orders retrieved successfully", result)


@orders_bp.get('/vnpay-return')
def vnpay_return():
    """
    VNPay redirect về kèm query đã ký; không cần token, xác thực bằng vnp_SecureHash.
    ---
    tags:
      - Orders
    parameters:
      - in: query
        name: vnp_TxnRef
        required: true
        type: string
      - in: query
        name: vnp_Amount
        required: true
        type: string
      - in: query
        name: vnp_ResponseCode
        required: true
        type: string
      - in: query
        name: vnp_SecureHash
        required: true
        type: string
    responses:
      200:
        description: "{orderId, status}; 00 -> Completed, mã khác -> Cancelled."
      400:
        description: Sai chữ ký, sai số tiền hoặc đơn đã kết thúc.
      404:
        description: Không tìm thấy đơn.
    """
    params = request.args.to_dict()
    current_app.logger.info(f"[VNPAY RETURN] TxnRef={params.get('vnp_TxnRef')}, "
                            f"ResponseCode={params.get('vnp_ResponseCode')}")
    result = _order_service().confirm_gateway_return(params)
    return _ok("Payment result recorded", result)
