import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ruralwork"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Evaluation year key; defaults to the current calendar year when unset
EVALUATION_YEAR = os.getenv("EVALUATION_YEAR") or None

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also create the demo accounts (and run SEED_SQL_PATH if set)
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
SEED_SQL_PATH = os.getenv("SEED_SQL_PATH") or None
