"""
Munch Club Admin API
====================

Run with:
    python app.py

Or through the Flask CLI (maintenance commands included):
    FLASK_APP=app.py flask run
    FLASK_APP=app.py flask maintenance cleanup-logs --days 30
"""

import logging

from flask import Flask

from munchclub_admin import MunchclubAdmin, Config


def create_app(config=None):
    app = Flask(__name__)
    MunchclubAdmin(app, config)
    return app


app = create_app()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    print("\n" + "=" * 60)
    print("Munch Club Admin API")
    print("=" * 60)
    print(f"Ping:            http://localhost:{Config.port}/api/test")
    print(f"Dashboard stats: http://localhost:{Config.port}/api/dashboard/stats")
    print(f"Orders:          http://localhost:{Config.port}/api/admin/orders")
    print("=" * 60 + "\n")

    app.run(host='0.0.0.0', port=Config.port, debug=True)
