from __future__ import annotations

import logging
import re
import uuid
from contextlib import closing
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DBConfig

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

# (name, phone, password, role, department, position)
DEMO_USERS = (
    ("系统管理员", "13800000000", "admin123", Role.ADMIN, "党政办", "管理员"),
    ("张三", "13800000001", "staff123", Role.TOWN_STAFF, "党政办", "科员"),
    ("李四", "13800000002", "staff123", Role.STATION_STAFF, "农业服务中心", "站长"),
    ("王五", "13800000003", "staff123", Role.WORK_TEAM, "驻村工作队", "队长"),
)


def _connect(config: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=config.host, port=config.port, user=config.user, password=config.password, use_pure=True)
    if with_database:
        kwargs["database"] = config.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # the target database comes from DB_CONFIG, not from the script
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    return re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside of quoted strings."""

    buf: list[str] = []
    quote = ""
    escape = False
    for ch in sql:
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = ""
        elif ch in "'\"":
            quote = ch
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: str | Path) -> None:
    config = DBConfig.from_dict(db_config)
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    with closing(_connect(config)) as conn:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_dict(db_config)
    with closing(_connect(config, with_database=False)) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, schema_path)
    logger.info("schema applied from %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)
    logger.info("seed applied from %s", seed_path)


def ensure_demo_users(db_config: dict) -> None:
    """Create (or reset the password of) one demo account per role."""

    config = DBConfig.from_dict(db_config)
    with closing(_connect(config)) as conn:
        cur = conn.cursor(dictionary=True)
        for name, phone, password, role, department, position in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT id FROM users WHERE phone=%s", (phone,))
            if cur.fetchone():
                cur.execute(
                    "UPDATE users SET password_hash=%s, role=%s, is_active=1 WHERE phone=%s",
                    (password_hash, role.value, phone),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (id, name, phone, password_hash, role, department, position, total_score)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, 100)
                    """,
                    (str(uuid.uuid4()), name, phone, password_hash, role.value, department, position),
                )
        conn.commit()
    logger.info("demo users ready (%d)", len(DEMO_USERS))


def list_tables(db_config: dict) -> list[str]:
    config = DBConfig.from_dict(db_config)
    with closing(_connect(config)) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
