"""
main.py

Flask entrypoint for the BurnBox API.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, redis, celery
  - Infrastructure: Redis server with keyspace notifications enabled

Notes:
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
  - The expiry listener runs in this process; the Celery beat sweep is the
    fallback for missed notifications
"""

import os

from burnbox.app_factory import AppConfig, create_app, start_expiry_listener
from burnbox.config.logging_config import setup_logging

setup_logging()

config = AppConfig()
app = create_app(config)

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    if config.expiry_listener_enabled:
        start_expiry_listener(app)

    # The reloader would start a second listener in the child process
    app.run(host=host, port=port, debug=debug, use_reloader=False)
