import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default='false'):
    return os.environ.get(name, default).lower() == 'true'


class Config:
    """Base configuration class with all settings as static attributes."""

    # Core configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'your-secret-key-here'
    DEBUG = _env_flag('FLASK_DEBUG')

    # MySQL connection timeouts
    MYSQL_CONNECT_TIMEOUT = 30
    MYSQL_READ_TIMEOUT = 30
    MYSQL_WRITE_TIMEOUT = 30

    # Database configuration, falls back to SQLite if no DATABASE_URL is provided
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///coursehub.db'

    # Disable track modifications for performance
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Pool options only make sense for a server database
    if SQLALCHEMY_DATABASE_URI.startswith('mysql'):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "pool_recycle": 3600,  # Recycle connections after 1 hour
            "pool_pre_ping": True,  # Check connection health before use
            "pool_size": 10,
            "max_overflow": 20,
            "connect_args": {
                "connect_timeout": MYSQL_CONNECT_TIMEOUT,
                "read_timeout": MYSQL_READ_TIMEOUT,
                "write_timeout": MYSQL_WRITE_TIMEOUT,
            }
        }
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {}

    # Dropout job settings
    # Validated by the dropout command
    DROPOUT_CHUNK_SIZE = os.environ.get('DROPOUT_CHUNK_SIZE', '1000')
    DROPOUT_DRY_RUN = _env_flag('DROPOUT_DRY_RUN')
    DROPOUT_DEADLINE_RESOLVER = os.environ.get(
        'DROPOUT_DEADLINE_RESOLVER',
        'coursehub.services.dropout_service.latest_enrollment_deadline'
    )

    # Logging
    LOG_TO_FILE = _env_flag('LOG_TO_FILE', 'true')
    LOG_DIR = os.environ.get('LOG_DIR', os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs'))


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_ECHO = _env_flag('SQL_DEBUG')


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False

    def __init__(self):
        # Checked on instantiation so importing this module never fails
        if not os.environ.get('SECRET_KEY'):
            raise ValueError("SECRET_KEY environment variable must be set in production")
        if not os.environ.get('DATABASE_URL'):
            raise ValueError("DATABASE_URL environment variable must be set in production")
        self.SECRET_KEY = os.environ['SECRET_KEY']


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LOG_TO_FILE = False

    # Always commit in tests unless a test flips it explicitly
    DROPOUT_DRY_RUN = False
    DROPOUT_CHUNK_SIZE = 1000


# Configuration dictionary
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


# Helper function to get current configuration
def get_config(config_name=None):
    """Get a configuration instance by name, defaulting to FLASK_ENV."""
    config_name = config_name or os.environ.get('FLASK_ENV', 'development')
    return config_by_name[config_name]()
