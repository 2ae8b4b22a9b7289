from __future__ import annotations

import importlib

from dotenv import load_dotenv

from coaching_desk.config import get_settings_module
from coaching_desk.container import build_container
from coaching_desk.database.bootstrap import ensure_indexes


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    mongo_config = dict(settings.MONGO_CONFIG)

    container = build_container(mongo_config=mongo_config, secret_key=settings.SECRET_KEY)
    count = ensure_indexes(container.conn.db)
    print(f"OK: ensured {count} indexes on database {mongo_config.get('database')}")
    container.conn.close()


if __name__ == "__main__":
    main()
