import os

from .base import CODE_ROTATION_INTERVAL_SECONDS, LOG_LEVEL, db_config, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config()

DEBUG = False

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

CODE_ROTATION_AUTOSTART = env_flag("CODE_ROTATION_AUTOSTART", "1")
