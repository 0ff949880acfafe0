from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.ruralwork.ruralwork.database.bootstrap import apply_seed_sql, ensure_demo_users


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the demo accounts, optionally after running a seed script.")
    parser.add_argument("--sql", help="extra seed .sql file to run first")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    if args.sql:
        apply_seed_sql(db_config, seed_path=args.sql)
    ensure_demo_users(db_config)
    print(
        "OK: seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
