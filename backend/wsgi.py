# backend/wsgi.py
"""
Entry point for `flask run` (FLASK_APP=wsgi.py) and direct execution.

Shortly after startup a background timer reports licenses that have
passed their expiry date.
"""

import atexit
import os
import threading

from caja import create_app
from caja.extensions import db
from caja.services import license_service

app = create_app()

EXPIRED_LICENSE_CHECK_DELAY = 2.0


def _check_expired_licenses():
    with app.app_context():
        license_service.check_expired_licenses()


def _dispose_engine():
    with app.app_context():
        db.engine.dispose()


atexit.register(_dispose_engine)


if __name__ == "__main__":
    timer = threading.Timer(EXPIRED_LICENSE_CHECK_DELAY, _check_expired_licenses)
    timer.daemon = True
    timer.start()
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "3000")))
