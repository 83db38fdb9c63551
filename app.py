import os
from datetime import timedelta
from pathlib import Path

from flask import Flask, render_template

from accounts import accounts_blueprint, get_current_user
from daily import create_daily_blueprint
from extensions import db
from pokedex import init_pokedex
from supabase import create_client


# ====== Feature toggle ======
def _env_flag(name: str, default: bool) -> bool:
    """Parse truthy feature-toggle values from the environment."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"⚠️ Invalid {name} value: {value!r}. Using default {default}.")
        return default


def create_app(test_config=None) -> Flask:
    app = Flask(__name__)
    app.permanent_session_lifetime = timedelta(days=365)

    if test_config:
        app.config.update(test_config)

    # ====== Config ======
    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY") or os.urandom(24)
    app.config.setdefault("USE_SUPABASE", _env_flag("USE_SUPABASE", True))
    app.config.setdefault("SUPABASE_URL", os.environ.get("SUPABASE_URL"))
    app.config.setdefault("SUPABASE_KEY", os.environ.get("SUPABASE_KEY"))
    app.config.setdefault("SUPABASE_ANON_KEY", os.environ.get("SUPABASE_ANON_KEY"))
    app.config.setdefault("POKEAPI_BASE_URL", os.environ.get("POKEAPI_BASE_URL", "https://pokeapi.co/api/v2"))
    app.config.setdefault("POKEAPI_TIMEOUT_SECONDS", _env_int("POKEAPI_TIMEOUT_SECONDS", 10))
    app.config.setdefault("UNLIMITED_POOL_SIZE", _env_int("UNLIMITED_POOL_SIZE", 1025))

    if "SQLALCHEMY_DATABASE_URI" not in app.config:
        data_dir = Path(app.root_path) / "data"
        data_dir.mkdir(parents=True, exist_ok=True)
        sqlite_path = data_dir / "app.db"
        app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL") or f"sqlite:///{sqlite_path}"
    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)

    log_level = app.config.get("LOG_LEVEL") or os.environ.get("LOG_LEVEL")
    if log_level:
        app.logger.setLevel(str(log_level).upper())

    # ====== Supabase setup ======
    supabase = app.config.get("SUPABASE_CLIENT")
    url, key = app.config["SUPABASE_URL"], app.config["SUPABASE_KEY"]
    if supabase is None and app.config["USE_SUPABASE"] and url and key:
        try:
            supabase = create_client(url, key)
        except Exception as exc:
            app.logger.warning("Could not init Supabase client: %s", exc)
            supabase = None
    if supabase is None and app.config["USE_SUPABASE"]:
        app.logger.info("Supabase not configured; using the SQL record store.")
    app.config["SUPABASE_CLIENT"] = supabase

    # ====== Extensions & blueprints ======
    db.init_app(app)
    init_pokedex(app)

    app.register_blueprint(create_daily_blueprint(get_current_user))
    app.register_blueprint(accounts_blueprint)

    @app.errorhandler(404)
    @app.errorhandler(500)
    def show_custom_error_page(err):
        status_code = getattr(err, "code", 500) or 500
        return render_template("error.html", status_code=status_code, user=get_current_user()), status_code

    with app.app_context():
        # Table registration happens on import.
        import models  # noqa: F401
        import daily.models  # noqa: F401
        import accounts.models  # noqa: F401

        db.create_all()

    return app


# ====== Entrypoint ======
if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.environ.get("PORT", 8080)), debug=True)
