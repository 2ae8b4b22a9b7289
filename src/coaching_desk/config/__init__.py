import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module, development by default
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "coaching_desk.config.production"

    if env in {"test", "testing"}:
        return "coaching_desk.config.testing"

    return "coaching_desk.config.development"


def mongo_uri_from_env(default: str = "mongodb://localhost:27017") -> str:
    # Both names are accepted by existing deployments
    return os.getenv("MONGODB_URI") or os.getenv("MONGO_URL") or default
