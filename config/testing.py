from .base import db_config, env_flag

SECRET_KEY = "test-secret"

DB_CONFIG = db_config(default_password="12345")

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

CODE_ROTATION_INTERVAL_SECONDS = 300
CODE_ROTATION_AUTOSTART = env_flag("CODE_ROTATION_AUTOSTART", "0")
