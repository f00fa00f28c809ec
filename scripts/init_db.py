"""Create the timetracker schema, optionally seeding demo users.

    python scripts/init_db.py            # apply schema.sql
    python scripts/init_db.py --seed     # apply, then add demo users
    python scripts/init_db.py --check    # only report missing tables
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.timetracker.timetracker.database.bootstrap import apply_schema, ensure_demo_users, missing_tables

SCHEMA_PATH = REPO_ROOT / "database" / "schema.sql"


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", action="store_true", help="insert demo users after applying the schema")
    parser.add_argument("--check", action="store_true", help="verify tables without changing anything")
    args = parser.parse_args(argv)

    settings_module = get_settings_module()
    db_config = dict(importlib.import_module(settings_module).DB_CONFIG)
    target = f"{db_config.get('database')} ({settings_module})"

    if not args.check:
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        print(f"Schema applied to {target}")
        if args.seed:
            print(f"Demo users created: {ensure_demo_users(db_config)}")

    missing = missing_tables(db_config)
    if missing:
        print(f"Missing tables in {target}: {', '.join(missing)}", file=sys.stderr)
        return 1
    print(f"All tables present in {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
