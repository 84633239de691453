import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance"),
}

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
# Attendance log entries buffered before a batch insert
AUDIT_FLUSH_THRESHOLD = int(os.getenv("AUDIT_FLUSH_THRESHOLD", "10"))
SUMMARY_CACHE_SECONDS = float(os.getenv("SUMMARY_CACHE_SECONDS", "30"))
COMPLIANCE_RATE_CEILING = float(os.getenv("COMPLIANCE_RATE_CEILING", "100"))
