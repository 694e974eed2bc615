# tutorhub/services/vnpay_service.py
import hmac
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

VNPAY_VERSION = "2.1.0"
VNPAY_COMMAND = "pay"
VNPAY_CURRENCY = "VND"
VNPAY_LOCALE = "vn"
VNPAY_ORDER_TYPE = "250000"  # Mã loại hàng hóa: dịch vụ giáo dục
DEFAULT_IP_ADDRESS = "127.0.0.1"
CREATE_DATE_FORMAT = "%Y%m%d%H%M%S"

# Không đưa vào chuỗi ký
HASH_PARAMS = ("vnp_SecureHash", "vnp_SecureHashType")


def to_minor_units(amount) -> int:
    """
    VNPay nhận số tiền nhân 100 (không có phần thập phân).
    Raises ValueError nếu âm hoặc không nguyên sau khi nhân.
    """
    try:
        scaled = Decimal(str(amount)) * 100
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Số tiền không hợp lệ: {amount}")

    if scaled < 0:
        raise ValueError("Số tiền không được âm")
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Số tiền không hợp lệ sau khi nhân 100: {amount}")

    return int(scaled)


def canonical_query(params: dict) -> str:
    """key=value&... đã sắp xếp theo key và URL-encode (space -> '+')."""
    return urlencode(sorted((k, str(v)) for k, v in params.items()))


class VNPayService:
    """Tạo URL thanh toán VNPay có chữ ký HMAC-SHA512 và xác minh query trả về."""

    def __init__(self, tmn_code: str, hash_secret: str, payment_url: str, return_url: str,
                 utc_offset_hours: int = 7):
        if not tmn_code or not hash_secret:
            raise ValueError("VNPay credentials chưa được cấu hình trong .env")

        self.tmn_code = tmn_code
        self.hash_secret = hash_secret
        self.payment_url = payment_url
        self.return_url = return_url
        self.tz = timezone(timedelta(hours=utc_offset_hours))

    @classmethod
    def from_config(cls, config) -> "VNPayService":
        return cls(
            tmn_code=config.get("VNPAY_TMN_CODE"),
            hash_secret=config.get("VNPAY_HASH_SECRET"),
            payment_url=config.get("VNPAY_URL"),
            return_url=config.get("VNPAY_RETURN_URL"),
            utc_offset_hours=int(config.get("VNPAY_UTC_OFFSET_HOURS", 7)),
        )

    def now(self) -> datetime:
        # vnp_CreateDate phải theo giờ GMT+7
        return datetime.now(self.tz)

    def sign(self, query: str) -> str:
        return hmac.new(
            self.hash_secret.encode("utf-8"),
            query.encode("utf-8"),
            hashlib.sha512
        ).hexdigest()

    def build_payment_params(self, order_id, amount, course_name: str, ip_address: str = None,
                             created_at: datetime = None) -> dict:
        created_at = created_at or self.now()
        return {
            "vnp_Version": VNPAY_VERSION,
            "vnp_Command": VNPAY_COMMAND,
            "vnp_TmnCode": self.tmn_code,
            "vnp_Amount": to_minor_units(amount),
            "vnp_CurrCode": VNPAY_CURRENCY,
            "vnp_TxnRef": str(order_id),
            "vnp_OrderInfo": f"Payment for course: {course_name}",
            "vnp_OrderType": VNPAY_ORDER_TYPE,
            "vnp_Locale": VNPAY_LOCALE,
            "vnp_ReturnUrl": f"{self.return_url}?orderId={order_id}",
            "vnp_IpAddr": ip_address or DEFAULT_IP_ADDRESS,
            "vnp_CreateDate": created_at.strftime(CREATE_DATE_FORMAT),
        }

    def create_payment_url(self, order_id, amount, course_name: str, ip_address: str = None,
                           created_at: datetime = None) -> str:
        """
        Tạo redirect URL tới cổng VNPay.

        Args:
            order_id: _id của Order (vnp_TxnRef)
            amount: Tổng tiền (VNĐ)
            course_name: Tên khóa học, đưa vào vnp_OrderInfo
            ip_address: IP client, mặc định 127.0.0.1
            created_at: Thời điểm tạo; truyền cố định để có kết quả lặp lại được

        Returns:
            str: URL đầy đủ, query đã sắp xếp + vnp_SecureHash
        """
        params = self.build_payment_params(order_id, amount, course_name, ip_address, created_at)
        query = canonical_query(params)
        secure_hash = self.sign(query)

        logger.info("Đã tạo URL VNPay cho order %s (vnp_Amount=%s)", order_id, params["vnp_Amount"])
        return f"{self.payment_url}?{query}&vnp_SecureHash={secure_hash}"

    def verify_return(self, params: dict) -> bool:
        """
        Xác minh chữ ký query VNPay trả về (return URL / IPN).

        Returns:
            bool: True nếu vnp_SecureHash khớp
        """
        received = (params.get("vnp_SecureHash") or "").lower()
        if not received:
            return False

        signed = {
            k: v for k, v in params.items()
            if k.startswith("vnp_") and k not in HASH_PARAMS
        }
        expected = self.sign(canonical_query(signed))
        return hmac.compare_digest(received, expected)
