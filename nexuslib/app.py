import logging
import os
import sys

import structlog
from flask import Flask

from nexuslib.constants import BUILD_VERSION, NEXUS_DB
from nexuslib.db import db, init_db
from nexuslib.exceptions import register_exception_handlers
from nexuslib.jobs import init_jobs, start_scan_job
from nexuslib.routes import library_bp, scan_bp, system_bp
from nexuslib.scanner import build_scanner_service
from nexuslib.settings import load_settings, reload_conf
from nexuslib.utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs, sanitize_sensitive_data

logger = structlog.get_logger('main')


def _processors(json_output):
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_logging(level=logging.INFO):
    """Colored stdlib handler; structlog renders JSON when LOG_FORMAT=json"""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"))
    logging.basicConfig(level=level, handlers=[handler], force=True)

    structlog.configure(
        processors=_processors(os.environ.get("LOG_FORMAT") == "json"),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())
    # Connection pool chatter from the metadata clients
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def create_app(config_overrides=None, settings=None, scanner=None):
    """Application factory

    Args:
        config_overrides: Flask config values (tests use an in-memory database)
        settings: settings dict; loaded from the YAML file when omitted
        scanner: prebuilt ScannerService; built from settings when omitted
    """
    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = NEXUS_DB
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    if config_overrides:
        app.config.update(config_overrides)

    if settings is None:
        settings = reload_conf()
    logger.debug("Loaded settings", settings=sanitize_sensitive_data(settings))

    db.init_app(app)

    register_exception_handlers(app)

    app.register_blueprint(library_bp)
    app.register_blueprint(scan_bp)
    app.register_blueprint(system_bp)

    init_jobs(app, scanner or build_scanner_service(settings))

    with app.app_context():
        init_db(app)

    if settings.get("scan", {}).get("on_startup"):
        logger.info("Starting initial library scan...")
        start_scan_job(app)

    logger.info(f"Nexus Library {BUILD_VERSION} ready")
    return app


def main():
    configure_logging()
    settings = load_settings()
    app = create_app(settings=settings)
    host = os.environ.get("NEXUS_HOST", "127.0.0.1")
    port = int(os.environ.get("NEXUS_PORT", "8465"))
    app.run(host=host, port=port)


if __name__ == '__main__':
    main()
