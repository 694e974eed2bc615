# tutorhub/controllers/dashboard.py
from flask import Blueprint, jsonify, request

from tutorhub.models.account import AccountRole
from tutorhub.services.dashboard_service import DashboardService
from tutorhub.services.mongo_service import get_collections
from tutorhub.utils.auth import require_auth, require_role
from tutorhub.utils.validation import parse_bool, validate_year

# Blueprint cho thống kê trang quản trị, chỉ Admin
dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api/dashboard')


@require_auth
@require_role(AccountRole.ADMIN)
def _check_admin():
    return None


@dashboard_bp.before_request
def _admin_only():
    # CORS preflight không mang token
    if request.method == 'OPTIONS':
        return None
    return _check_admin()


@dashboard_bp.route('/revenue/<year>', methods=['GET'])
def monthly_revenue(year):
    """
    Doanh thu nền tảng (15% tổng đơn Completed) theo từng tháng của năm.
    ---
    tags:
      - Dashboard
    security:
      - Bearer: []
    parameters:
      - in: path
        name: year
        required: true
        type: integer
    responses:
      200:
        description: 12 phần tử {month, revenue}, tháng 1..12.
      400:
        description: Năm không hợp lệ.
      403:
        description: Không phải Admin.
    """
    year = validate_year(year)
    revenue = DashboardService(get_collections()).monthly_revenue(year)
    return jsonify([item.to_dict() for item in revenue]), 200


@dashboard_bp.route('/accounts/status', methods=['GET'])
def account_status_stats():
    """
    Số account theo status; ?byRole=true để tách theo Tutor/User.
    ---
    tags:
      - Dashboard
    security:
      - Bearer: []
    parameters:
      - in: query
        name: byRole
        required: false
        type: boolean
    responses:
      200:
        description: "{Active, Inactive} hoặc {Tutor: {...}, User: {...}}"
    """
    by_role = parse_bool(request.args.get("byRole"))
    stats = DashboardService(get_collections()).account_status_stats(by_role=by_role)
    return jsonify(stats), 200


@dashboard_bp.route('/courses/status', methods=['GET'])
def course_status_stats():
    """
    Số khóa học đang bật / đã ẩn.
    ---
    tags:
      - Dashboard
    security:
      - Bearer: []
    responses:
      200:
        description: "{Active, Inactive}"
      403:
        description: Không phải Admin.
    """
    stats = DashboardService(get_collections()).course_status_stats()
    return jsonify(stats), 200


@dashboard_bp.route('/top-account', methods=['GET'])
def top_account():
    """
    Học viên hoàn thành nhiều khóa học nhất.
    ---
    tags:
      - Dashboard
    security:
      - Bearer: []
    responses:
      200:
        description: "{accountId, fullName, email, completedCourses}"
      404:
        description: Chưa có ai hoàn thành khóa học.
    """
    top = DashboardService(get_collections()).top_account()
    if not top:
        return jsonify({"status": 404, "message": "No Account found"}), 404
    return jsonify(top.to_dict()), 200


@dashboard_bp.route('/top-tutor', methods=['GET'])
def top_tutor():
    """
    Tutor có nhiều lượt học viên hoàn thành khóa học nhất.
    ---
    tags:
      - Dashboard
    security:
      - Bearer: []
    responses:
      200:
        description: "{accountId, fullName, email, completedCourses}"
      404:
        description: Chưa có tutor nào có học viên hoàn thành.
    """
    top = DashboardService(get_collections()).top_tutor()
    if not top:
        return jsonify({"status": 404, "message": "No Tutor found"}), 404
    return jsonify(top.to_dict()), 200
