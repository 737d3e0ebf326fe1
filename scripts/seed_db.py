from __future__ import annotations

import importlib

from dotenv import load_dotenv

from hrm_system.config import get_settings_module
from hrm_system.database.bootstrap import apply_seed_sql


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config)

    print(
        "OK: Seeded reference data -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
