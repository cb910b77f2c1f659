from __future__ import annotations

import json
import sqlite3

from familyaid.database import LocalStore
from familyaid.logger import StructuredLogger
from familyaid.schema import CURRENT_SCHEMA_VERSION, initialize_schema
from familyaid.utils.audit import log_audit_event


def test_schema_is_idempotent(store: LocalStore, logger: StructuredLogger) -> None:
    initialize_schema(store.sqlite, logger)

    version = store.sqlite.execute("SELECT version FROM schema_version").fetchall()
    tables = {
        row["name"]
        for row in store.sqlite.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    }

    assert [row["version"] for row in version] == [CURRENT_SCHEMA_VERSION]
    assert {"schema_version", "app_settings", "audit_log"} <= tables


def test_audit_event_is_persisted(store: LocalStore, logger: StructuredLogger) -> None:
    log_audit_event(
        logger=logger,
        action="LOGIN",
        entity_type="Account",
        entity_id="7",
        user_id="7",
        details={"login_type": "head"},
        conn=store.sqlite,
    )

    row = store.sqlite.execute("SELECT * FROM audit_log").fetchone()

    assert (row["action"], row["entity_type"], row["user_id"]) == ("LOGIN", "Account", "7")
    assert json.loads(row["details"]) == {"login_type": "head"}


def test_audit_persistence_failure_is_only_logged(logger: StructuredLogger) -> None:
    conn = sqlite3.connect(":memory:")
    try:
        log_audit_event(
            logger=logger,
            action="LOGOUT",
            entity_type="Account",
            entity_id="7",
            user_id="7",
            conn=conn,
        )
    finally:
        conn.close()


def test_closing_the_store_twice_is_safe(logger: StructuredLogger) -> None:
    local = LocalStore(sqlite_path=":memory:", logger=logger)
    local.close()
    local.close()
