import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hrm_test_db"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

APP_URL = "http://localhost"
TOKEN_MAX_AGE_SECONDS = 3600

MAIL_HOST = ""
MAIL_PORT = 587
MAIL_USER = ""
MAIL_PASSWORD = ""
MAIL_SENDER = "no-reply@hrm.local"

AUTO_INIT_DB = False
ADMIN_EMAIL = ""
ADMIN_PASSWORD = ""

HOLIDAY_API_URL = ""
HOLIDAY_COUNTRY = "VN"
