import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "qr-attendance-secret"

    # Database
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "qr_attendance")

    # Dev helpers
    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))

    # Attendance engine
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    AUDIT_FLUSH_THRESHOLD = int(os.environ.get("AUDIT_FLUSH_THRESHOLD", "10"))
    SUMMARY_CACHE_SECONDS = float(os.environ.get("SUMMARY_CACHE_SECONDS", "30"))
    COMPLIANCE_RATE_CEILING = float(os.environ.get("COMPLIANCE_RATE_CEILING", "100"))


# Module-level aliases read by create_app (mysql-connector dict)
SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}

DEBUG = bool(int(os.environ.get("DEBUG", "1")))

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = Config.AUTO_SEED_DB

LOG_LEVEL = Config.LOG_LEVEL
AUDIT_FLUSH_THRESHOLD = Config.AUDIT_FLUSH_THRESHOLD
SUMMARY_CACHE_SECONDS = Config.SUMMARY_CACHE_SECONDS
COMPLIANCE_RATE_CEILING = Config.COMPLIANCE_RATE_CEILING
