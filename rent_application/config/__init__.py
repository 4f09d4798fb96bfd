"""
Configuration Management
Environment driven configuration for the rent schedule service
"""

import os
import tempfile
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'rent-schedule-secret-key-change-in-production')
    LOG_DIR = Path(os.environ.get('LOG_DIR', BASE_DIR / 'logs'))

    # Flask settings
    FLASK_ENV = os.environ.get('FLASK_ENV', 'development')
    DEBUG = FLASK_ENV == 'development'
    TESTING = False

    # API settings
    API_HOST = os.environ.get('API_HOST', 'localhost')
    API_PORT = int(os.environ.get('API_PORT', 5001))

    # CORS settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    # Logging
    LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT = 5

    # Rent schedule
    RENT_STATUS_POLICY = os.environ.get('RENT_STATUS_POLICY', 'overdueByDate')
    SCHEDULE_MAX_MONTHS = int(os.environ.get('SCHEDULE_MAX_MONTHS', 12))
    INVOICE_DUE_DAY = int(os.environ.get('INVOICE_DUE_DAY', 5))

    # Property backend (lease history lookups)
    PROPERTY_API_URL = os.environ.get('PROPERTY_API_URL', 'http://localhost:5000/api')
    PROPERTY_API_TIMEOUT = float(os.environ.get('PROPERTY_API_TIMEOUT', 10.0))
    PROPERTY_API_TOKEN = os.environ.get('PROPERTY_API_TOKEN')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = False
    PROPERTY_API_URL = 'http://property-backend.test/api'
    LOG_DIR = Path(tempfile.gettempdir()) / 'rent_schedule_logs'


# Get configuration based on environment
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
