from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'squarehead.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # club defaults, overridden by rows in the settings table
    CLUB_NAME = os.getenv("CLUB_NAME", "Square Dance Club")
    CLUB_DAY_OF_WEEK = os.getenv("CLUB_DAY_OF_WEEK", "Wednesday")
    CLUB_TIMEZONE = os.getenv("CLUB_TIMEZONE", "UTC")
    REMINDER_DAYS = os.getenv("REMINDER_DAYS", "14,7,3,1")
    EMAIL_TEMPLATE_SUBJECT = "Squarehead Reminder - {club_name} Dance on {dance_date}"
    EMAIL_TEMPLATE_BODY = (
        "Hello {member_name}, you are scheduled to be a squarehead for {club_name} on {dance_date}."
    )

    # shared secret for the external cron trigger
    CRON_TOKEN = os.getenv("CRON_TOKEN")

    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "True").lower() == "true"
    MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "False").lower() == "true"
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@squareheadclub.local")

    WTF_CSRF_TIME_LIMIT = None
    WTF_CSRF_HEADERS = ["X-CSRF-Token", "X-CSRFToken"]

class DevConfig(BaseConfig):
    DEBUG = True
    SEED_TEST_DATA = True
    # outgoing mail is only logged by Flask-Mail
    MAIL_SUPPRESS_SEND = True
    DEFAULT_USERS = [
        {"email": "admin@example.com", "password": "pass", "role": "ADMIN",
         "first_name": "Club", "last_name": "Admin"},
    ]

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False}}
    WTF_CSRF_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    SEED_TEST_DATA = False
    DEFAULT_USERS = []
    CRON_TOKEN = "test-cron-token"

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_TEST_DATA = False
    DEFAULT_USERS = []

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
