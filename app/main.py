import logging
from pathlib import Path

from flask import Flask, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix

from config_manager import ConfigManager
from app.quota.factory import create_quota_module
from app.quota.identity import resolve_client_ip
from app.documents.factory import create_document_module
from app.publishing.factory import create_publishing_module

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent
UI_DIR = PROJECT_ROOT / "ui"


def load_template(name: str) -> str:
    """Load a template from the UI directory."""
    return (UI_DIR / name).read_text(encoding="utf-8")


def create_app(config_manager: ConfigManager = None, moderator=None, rate_limiter=None) -> Flask:
    """Build the Flask application and wire all subsystems.

    Args:
        config_manager: Configuration source (defaults to publisher_config.json + env)
        moderator: Optional moderation collaborator override
        rate_limiter: Optional secondary rate limiter override

    Returns:
        Configured Flask app; subsystem modules are available in app.extensions["publisher"]
    """
    config_manager = config_manager or ConfigManager()
    app_config = config_manager.get_app_config()
    llm_config = config_manager.get_llm_config()
    quota_settings = config_manager.get_quota_settings()
    publish_config = config_manager.get_publish_config()
    moderation_config = config_manager.get_moderation_config()
    paths_config = config_manager.get_paths_config()

    data_dir = Path(paths_config.data_dir)
    if not data_dir.is_absolute():
        data_dir = PROJECT_ROOT / data_dir
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / paths_config.database_file

    app = Flask(__name__)
    # Generated links follow the proxy's scheme, host and mount prefix.
    # Client identity comes from the trusted headers, so remote_addr is left alone.
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=0, x_proto=1, x_host=1, x_prefix=1)
    app.config["MAX_CONTENT_LENGTH"] = publish_config.max_content_bytes * 2

    def get_identity() -> str:
        return resolve_client_ip(request.headers, app_config.trusted_ip_header)

    quota_module = create_quota_module(
        db_path=db_path,
        get_identity=get_identity,
        daily_limit=quota_settings.daily_limit,
        reset_window_hours=quota_settings.reset_window_hours
    )

    document_module = create_document_module(
        db_path=db_path,
        quota_manager=quota_module["manager"],
        get_identity=get_identity,
        document_template=load_template("document.html"),
        view_cost=quota_settings.view_cost
    )

    publishing_module = create_publishing_module(
        quota_manager=quota_module["manager"],
        document_store=document_module["store"],
        get_identity=get_identity,
        llm_config=llm_config,
        publish_config=publish_config,
        moderation_config=moderation_config,
        editor_template=load_template("index.html"),
        moderator=moderator,
        rate_limiter=rate_limiter
    )

    app.register_blueprint(quota_module["blueprint"])
    app.register_blueprint(document_module["blueprint"])
    app.register_blueprint(publishing_module["blueprint"])

    app.extensions["publisher"] = {
        "quota": quota_module,
        "documents": document_module,
        "publishing": publishing_module,
        "db_path": db_path
    }

    @app.get("/actuator/health")
    def actuator_health():
        """Health check endpoint with publish outcome counters."""
        return jsonify({
            "status": "UP",
            "service": "markdown-publisher",
            "publish_metrics": publishing_module["metrics"].snapshot()
        }), 200

    logger.info(f"Publisher ready: database={db_path}, daily_limit={quota_settings.daily_limit}")
    return app
