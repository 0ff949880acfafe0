from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.web import register_error_handlers
from .container import Container, build_container
from .database.bootstrap import SCHEMA_PATH, apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .evaluations.controller import register as register_evaluations
from .leaves.controller import register as register_leaves
from .statistics.controller import register as register_statistics
from .systemlogs.controller import register as register_system_logs
from .teams.controller import register as register_teams
from .users.controller import register as register_users
from .votes.controller import register as register_votes

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.ensure_ascii = False

    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format=LOG_FORMAT)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"), db_config.get("port", 3306),
            db_config.get("database"),
        )

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            seed_path = getattr(settings, "SEED_SQL_PATH", None)
            if seed_path:
                apply_seed_sql(db_config, seed_path=seed_path)
            ensure_demo_users(db_config)

        container = build_container(
            db_config=db_config,
            evaluation_year=getattr(settings, "EVALUATION_YEAR", None),
        )

    register_error_handlers(app)
    register_users(app, container)
    register_evaluations(app, container)
    register_votes(app, container)
    register_leaves(app, container)
    register_teams(app, container)
    register_statistics(app, container)
    register_system_logs(app, container)

    return app
