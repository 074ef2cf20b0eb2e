from __future__ import annotations

import argparse
import importlib

from dotenv import load_dotenv

from hrms.config import get_settings_module
from hrms.database.bootstrap import ensure_demo_admin
from hrms.database.connection import MongoConfig, MongoConnection


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or reset the demo super admin login")
    parser.add_argument("--email", default="admin@hrms.local")
    parser.add_argument("--password", default="admin123")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    mongo_config = dict(settings.MONGO_CONFIG)

    conn = MongoConnection.get_instance(MongoConfig(uri=mongo_config["uri"], database=mongo_config["database"]))
    ensure_demo_admin(conn.db, email=args.email, password=args.password)
    print(f"OK: demo admin {args.email} -> {mongo_config['database']}")


if __name__ == "__main__":
    main()
