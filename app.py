import os
from flask import Flask, jsonify
from dotenv import load_dotenv

# --- ENVIRONMENT ---
load_dotenv()

from agriops.core import init_app, get_db


def create_app(config=None):
    """Build the Flask application, create tables and register every route"""
    app = Flask(__name__)
    init_app(app, config)

    from agriops import models  # noqa: F401  (registers the tables)

    with app.app_context():
        get_db().create_all()

    from agriops.api import register_all_routes
    register_all_routes()

    @app.route('/')
    def home():
        return jsonify({"success": True, "message": "agriops API is running"}), 200

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", 5000)), debug=False)
