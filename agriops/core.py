"""
Central module giving access to the main Flask instance
and the other shared resources.
"""

from flask import current_app, has_app_context
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_caching import Cache
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_cors import CORS
import logging
import os
from dotenv import load_dotenv

from agriops.triage import local_now

# Load environment variables
load_dotenv()

# Main Flask instance (set up by init_app from app.py)
app = None

# Flask extensions
db = SQLAlchemy()
bcrypt = Bcrypt()
cache = Cache()
limiter = Limiter(get_remote_address, default_limits=["2000 per day", "500 per hour"], storage_uri="memory://")

_CACHE_TYPES = {
    "simple": "SimpleCache",
    "filesystem": "FileSystemCache",
    "null": "NullCache",
}


def _env_flag(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def init_app(flask_app, config=None):
    """
    Initialise the main Flask instance and every extension.
    Must be called once from app.py; `config` overrides values read from the environment.
    """
    global app

    app = flask_app
    config = dict(config or {})

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Auth
    jwt_secret = os.getenv("JWT_SECRET_KEY")
    if not jwt_secret and "JWT_SECRET_KEY" not in config:
        print("⚠️  JWT_SECRET_KEY is not set, using an insecure development key")
        jwt_secret = "dev-insecure-secret"
    app.config['JWT_SECRET_KEY'] = jwt_secret
    app.config['JWT_EXPIRES_DAYS'] = int(os.getenv("JWT_EXPIRES_DAYS", 14))

    # Database (PostgreSQL via DATABASE_URL or local SQLite)
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    else:
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///agriops.db'
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Triage calendar and phone normalisation
    app.config['APP_TIMEZONE'] = os.getenv("APP_TIMEZONE", "Asia/Kolkata")
    app.config['DEFAULT_COUNTRY_CODE'] = os.getenv("DEFAULT_COUNTRY_CODE", "91")

    # Agent used for tickets created by external webhooks
    app.config['SYSTEM_AGENT_PHONE'] = os.getenv("SYSTEM_AGENT_PHONE", "0000000000")
    app.config['SYSTEM_AGENT_NAME'] = os.getenv("SYSTEM_AGENT_NAME", "System")

    app.config['EXPOSE_ERRORS'] = _env_flag("EXPOSE_ERRORS")
    app.config['RATELIMIT_ENABLED'] = _env_flag("RATELIMIT_ENABLED", "true")

    cache_type = os.getenv("CACHE_TYPE", "null").lower()
    app.config['CACHE_TYPE'] = _CACHE_TYPES.get(cache_type, "NullCache")
    app.config['CACHE_DEFAULT_TIMEOUT'] = int(os.getenv("CACHE_DEFAULT_TIMEOUT", 300))
    if app.config['CACHE_TYPE'] == "FileSystemCache":
        cache_dir = os.path.join(app.instance_path, 'cache')
        os.makedirs(cache_dir, exist_ok=True)
        app.config['CACHE_DIR'] = cache_dir

    # Explicit overrides (tests, embedding)
    app.config.update(config)

    uri = app.config['SQLALCHEMY_DATABASE_URI']
    if uri.startswith('sqlite'):
        print(f"✅ Database: SQLite ({uri})")
    else:
        print("✅ Database: external (DATABASE_URL)")
    if app.config['CACHE_TYPE'] == "NullCache":
        print("⚠️  Caching: disabled (null cache)")

    # Extensions are initialised idempotently
    if 'sqlalchemy' not in app.extensions:
        db.init_app(app)
    if 'bcrypt' not in app.extensions:
        bcrypt.init_app(app)
    if 'cache' not in app.extensions:
        cache.init_app(app)
    if 'limiter' not in app.extensions:
        limiter.init_app(app)

    origins = os.getenv("CORS_ORIGINS", "*")
    CORS(app, resources={r"/*": {"origins": [o.strip() for o in origins.split(",")] if origins != "*" else "*"}})


def get_app():
    """Return the main Flask instance"""
    if has_app_context():
        return current_app._get_current_object()
    if app is None:
        raise RuntimeError("Flask app not initialized. Call init_app() first.")
    return app


def get_db():
    """Return the SQLAlchemy instance"""
    if not has_app_context() and app is None:
        raise RuntimeError("Database not initialized. Call init_app() first.")
    return db


def get_bcrypt():
    """Return the Bcrypt instance"""
    if not has_app_context() and app is None:
        raise RuntimeError("Bcrypt not initialized. Call init_app() first.")
    return bcrypt


def get_cache():
    """Return the Cache instance"""
    if not has_app_context() and app is None:
        raise RuntimeError("Cache not initialized. Call init_app() first.")
    return cache


def get_limiter():
    """Return the Limiter instance"""
    if not has_app_context() and app is None:
        raise RuntimeError("Limiter not initialized. Call init_app() first.")
    return limiter


def local_clock():
    """Wall-clock time in the deployment time zone; the single clock for every stored timestamp"""
    if has_app_context():
        return local_now(current_app.config.get('APP_TIMEZONE'))
    return local_now(os.getenv("APP_TIMEZONE", "Asia/Kolkata"))
