# tutorhub/__init__.py
import os

from dotenv import load_dotenv
from flasgger import Swagger
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException

from tutorhub.utils.errors import ApiError

limiter = Limiter(key_func=get_remote_address)

REQUIRED_CONFIG = ['JWT_KEY', 'FLASK_SECRET_KEY', 'VNPAY_TMN_CODE', 'VNPAY_HASH_SECRET']


def _load_config(app, overrides=None):
    app.config["JWT_KEY"] = os.getenv("JWT_KEY")
    app.config["JWT_ISSUER"] = os.getenv("JWT_ISSUER")
    app.config["JWT_AUDIENCE"] = os.getenv("JWT_AUDIENCE")
    try:
        app.config["JWT_EXPIRES_MINUTES"] = int(os.getenv("JWT_EXPIRES_MINUTES", 120))
    except (ValueError, TypeError):
        app.config["JWT_EXPIRES_MINUTES"] = 120
    app.config["FLASK_SECRET_KEY"] = os.getenv("FLASK_SECRET_KEY")

    app.config["MONGO_CONNECTION_STRING"] = os.getenv("MONGO_CONNECTION_STRING")
    app.config["DATABASE_NAME"] = os.getenv("DATABASE_NAME", "TutorHub")

    # VNPay
    app.config["VNPAY_TMN_CODE"] = os.getenv("VNPAY_TMN_CODE")
    app.config["VNPAY_HASH_SECRET"] = os.getenv("VNPAY_HASH_SECRET")
    app.config["VNPAY_URL"] = os.getenv("VNPAY_URL", "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html")
    app.config["VNPAY_RETURN_URL"] = os.getenv("VNPAY_RETURN_URL", "http://localhost:3000")
    app.config["VNPAY_UTC_OFFSET_HOURS"] = int(os.getenv("VNPAY_UTC_OFFSET_HOURS", "7"))

    app.config["CORS_ORIGINS"] = os.getenv("CORS_ORIGINS", "*")
    app.config["IS_PRODUCTION"] = os.getenv("FLASK_ENV") == "production"

    # Rate limiting: production chặt, development rộng rãi để test
    if app.config["IS_PRODUCTION"]:
        app.config["RATELIMIT_DEFAULT"] = "200 per day;50 per hour"
    else:
        app.config["RATELIMIT_DEFAULT"] = "10000 per day;1000 per hour;200 per minute"
    app.config["RATELIMIT_STORAGE_URI"] = "memory://"  # Có thể dùng Redis trong production
    app.config["RATELIMIT_HEADERS_ENABLED"] = True
    app.config["RATELIMIT_ENABLED"] = os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"

    if overrides:
        app.config.update(overrides)

    missing = [key for key in REQUIRED_CONFIG if not app.config.get(key)]
    if missing:
        raise ValueError(f"Missing required environment variables: {', '.join(missing)}")

    app.config["SECRET_KEY"] = app.config["FLASK_SECRET_KEY"]
    app.config["MAX_CONTENT_LENGTH"] = 1 * 1024 * 1024  # 1MB, API chỉ nhận JSON


def create_app(config=None, mongo_client=None):
    load_dotenv()
    app = Flask(__name__)
    _load_config(app, config)

    # CORS - cho phép config từ environment
    cors_origins = app.config["CORS_ORIGINS"]
    if cors_origins != "*":
        cors_origins = [origin.strip() for origin in cors_origins.split(",")]

    CORS(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
        expose_headers=["Authorization"],
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    )

    # Swagger
    swagger_template = {
        "swagger": "2.0",
        "info": {
            "title": "TutorHub API",
            "description": "API đặt khóa học, thanh toán VNPay và thống kê quản trị",
            "version": "1.0.0",
        },
        "basePath": "/",
        "schemes": ["http", "https"],
        "securityDefinitions": {
            "Bearer": {
                "type": "apiKey",
                "name": "Authorization",
                "in": "header",
                "description": "Ví dụ: Bearer <token>",
            }
        },
    }
    Swagger(app, template=swagger_template)

    # Kết nối Mongo một lần cho cả app
    from tutorhub.services.mongo_service import init_mongo
    init_mongo(app, client=mongo_client)

    # Blueprints
    from tutorhub.controllers.orders import orders_bp
    from tutorhub.controllers.dashboard import dashboard_bp
    from tutorhub.controllers.tutor import tutor_bp

    app.register_blueprint(orders_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(tutor_bp)

    limiter.init_app(app)

    # Error handlers – trả {"status", "message"} với đúng mã lỗi
    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        if e.status_code >= 500:
            app.logger.error(f"Service error: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        # RequestRedirect (3xx) giữ nguyên response gốc
        if e.code is None or e.code < 400:
            return e
        return jsonify({"status": e.code, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        # Log chi tiết, chỉ trả message chung để tránh leak thông tin
        app.logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return jsonify({"status": 500, "message": "Internal server error"}), 500

    # Security headers
    @app.after_request
    def set_security_headers(response):
        # Không thêm security headers cho OPTIONS requests (CORS preflight)
        if request.method == 'OPTIONS':
            return response

        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        if app.config["IS_PRODUCTION"]:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    return app
