import os

from . import mongo_uri_from_env

# No default: a known key would let anyone forge session cookies
SECRET_KEY = os.getenv("SECRET_KEY")

MONGO_CONFIG = {
    "uri": mongo_uri_from_env(),
    "database": os.getenv("MONGO_DB_NAME", "student_management"),
    "server_selection_timeout_ms": int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000")),
    "connect_timeout_ms": int(os.getenv("MONGO_CONNECT_TIMEOUT_MS", "10000")),
    "socket_timeout_ms": int(os.getenv("MONGO_SOCKET_TIMEOUT_MS", "45000")),
    "max_pool_size": int(os.getenv("MONGO_MAX_POOL_SIZE", "10")),
    "min_pool_size": int(os.getenv("MONGO_MIN_POOL_SIZE", "1")),
}

MONGO_USE_TRANSACTIONS = bool(int(os.getenv("MONGO_USE_TRANSACTIONS", "0")))

SESSION_COOKIE_SECURE = True

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
