import atexit
import logging
import os
import sys
import traceback

# Log startup info
print(f"[STARTUP] Python version: {sys.version}")
print(f"[STARTUP] Working directory: {os.getcwd()}")

port_str = os.environ.get("PORT", "5000")
try:
    port = int(port_str)
except (ValueError, TypeError):
    print(f"[WARNING] Invalid PORT value: {port_str}, using 5000")
    port = 5000

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

try:
    from tutorhub import create_app
    app = create_app()
    print("[STARTUP] Successfully created Flask app")
except Exception as e:
    print(f"[ERROR] Failed to create Flask app: {e}")
    traceback.print_exc()
    sys.exit(1)

# Đóng kết nối Mongo khi process thoát
atexit.register(app.extensions["mongo"].close)

if __name__ == "__main__":
    try:
        print(f"[STARTUP] Starting server on 0.0.0.0:{port}")
        app.run(host="0.0.0.0", port=port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        print("[STARTUP] Server stopped by user")
        sys.exit(0)
