import os

from . import mongo_uri_from_env

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

MONGO_CONFIG = {
    "uri": mongo_uri_from_env(),
    "database": os.getenv("MONGO_DB_NAME", "student_management"),
    "server_selection_timeout_ms": int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000")),
    "connect_timeout_ms": int(os.getenv("MONGO_CONNECT_TIMEOUT_MS", "10000")),
    "socket_timeout_ms": int(os.getenv("MONGO_SOCKET_TIMEOUT_MS", "45000")),
    "max_pool_size": int(os.getenv("MONGO_MAX_POOL_SIZE", "10")),
    "min_pool_size": int(os.getenv("MONGO_MIN_POOL_SIZE", "1")),
}

# Multi-document transactions need a replica set
MONGO_USE_TRANSACTIONS = bool(int(os.getenv("MONGO_USE_TRANSACTIONS", "0")))

SESSION_COOKIE_SECURE = False

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, indexes are created on startup (idempotent)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
