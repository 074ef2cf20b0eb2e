from __future__ import annotations

import importlib

from dotenv import load_dotenv

from hrms.config import get_settings_module
from hrms.database.bootstrap import ensure_indexes
from hrms.database.connection import MongoConfig, MongoConnection


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    mongo_config = dict(settings.MONGO_CONFIG)

    conn = MongoConnection.get_instance(MongoConfig(uri=mongo_config["uri"], database=mongo_config["database"]))
    ensure_indexes(conn.db)
    print(f"OK: indexes ready -> {mongo_config['database']} (collections={len(conn.db.list_collection_names())})")


if __name__ == "__main__":
    main()
