"""
Rent Schedule Service
Flask application serving rent schedules, tenant occupancy and rent reports
"""

from flask import Flask
from flask_cors import CORS
import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Import configuration
from rent_application.config import Config, config

# Import blueprints
from rent_application.schedule_backend import schedule_bp

# Import event channel
from rent_application.rent_accounting.core.events import RentEventBus, RentEventLog


def setup_logging(log_dir: Path, max_bytes: int = Config.LOG_MAX_BYTES, backup_count: int = Config.LOG_BACKUP_COUNT):
    """Setup application logging"""
    log_dir.mkdir(parents=True, exist_ok=True)

    log_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # create_app may run more than once per process (tests)
    log_file = log_dir / 'rent_schedule.log'
    if any(getattr(h, 'baseFilename', None) == str(log_file.resolve()) for h in root_logger.handlers):
        return root_logger

    # File handler with rotation
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count
    )
    file_handler.setFormatter(log_formatter)
    file_handler.setLevel(logging.DEBUG)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(logging.INFO)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Keep HTTP client chatter out of the debug log
    for logger_name in ('httpx', 'httpcore'):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return root_logger


def create_app(config_name=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.environ.get('FLASK_ENV', 'default')
    app.config.from_object(config[config_name])

    # Setup logging
    logger = setup_logging(
        Path(app.config['LOG_DIR']),
        app.config['LOG_MAX_BYTES'],
        app.config['LOG_BACKUP_COUNT'],
    )
    logger.info("🚀 Initializing Rent Schedule Service...")

    # Initialize CORS
    cors_origins = app.config.get('CORS_ORIGINS', ['*'])
    if isinstance(cors_origins, str):
        cors_origins = cors_origins.split(',')

    CORS(app,
         resources={r"/api/*": {"origins": cors_origins, "methods": ["GET", "POST", "OPTIONS"], "allow_headers": ["Content-Type", "Authorization"]}},
         supports_credentials=True)

    # Event channel shared by in-process listeners
    event_bus = RentEventBus()
    app.extensions['rent_events'] = event_bus
    app.extensions['rent_event_log'] = RentEventLog(event_bus)

    # Register blueprints
    app.register_blueprint(schedule_bp)
    logger.info("✅ Blueprints registered")

    logger.info(f"✅ Application created successfully (config={config_name}, "
                f"status policy={app.config['RENT_STATUS_POLICY']})")
    return app


if __name__ == '__main__':
    app = create_app()
    logger = logging.getLogger(__name__)

    logger.info("══════════════════════════════════════════════════════════════")
    logger.info("   📊 Rent Schedule Service - Starting Server")
    logger.info("══════════════════════════════════════════════════════════════")
    logger.info(f"📍 API Endpoint: http://localhost:{Config.API_PORT}/api/")
    logger.info("   - /api/rent_schedule - Rent schedule of a lease")
    logger.info("   - /api/occupancy - Current / previous units of a tenant")
    logger.info("   - /api/rent_stats - Rent status per property")
    logger.info(f"📝 Logs: {Config.LOG_DIR}/rent_schedule.log")
    logger.info("══════════════════════════════════════════════════════════════")

    app.run(
        debug=Config.DEBUG,
        host=Config.API_HOST,
        port=Config.API_PORT
    )
