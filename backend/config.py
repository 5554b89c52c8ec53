import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(BASE_DIR, 'scoreboard.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Comma separated list of allowed origins; '*' allows any
    CLIENT_URL = os.environ.get('CLIENT_URL', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Fixture uploads
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(BASE_DIR, 'uploads')
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_UPLOAD_BYTES', str(5 * 1024 * 1024)))
    # Admin credentials
    TOKEN_MAX_AGE_SEC = int(os.environ.get('TOKEN_MAX_AGE_SEC', '3600'))
    ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', 'admin')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'change-me')
    # Background services (seconds)
    LIVE_TICK_SEC = float(os.environ.get('LIVE_TICK_SEC', '1'))
    RETENTION_DAYS = int(os.environ.get('RETENTION_DAYS', '30'))
    RETENTION_SWEEP_SEC = int(os.environ.get('RETENTION_SWEEP_SEC', str(24 * 60 * 60)))
    # Hard limit for graceful shutdown before the process is killed
    SHUTDOWN_TIMEOUT_SEC = int(os.environ.get('SHUTDOWN_TIMEOUT_SEC', '10'))
