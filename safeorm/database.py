import sqlite3
import logging

from safeorm.config import get_settings

class DatabaseEngine:
    logger = logging.getLogger("safeorm.sql")

    def __init__(self, db_path=None):
        self.db_path = db_path or get_settings().database_path
        # transactions are issued explicitly by Session.transaction();
        # the connection is shared with the web app's worker threads
        self.connection = sqlite3.connect(self.db_path, isolation_level=None, check_same_thread=False)
        self.connection.row_factory = sqlite3.Row
        self.connection.execute("PRAGMA foreign_keys = ON")

    def __repr__(self):
        return f"<DatabaseEngine {self.db_path}>"

    def _log(self, sql, params=None):
        if not get_settings().log_sql:
            return
        msg = f"[SQL EXECUTE]: {sql}"
        if params:
            msg += f" | [PARAMS]: {params}"
        self.logger.debug(msg)

    def execute(self, sql, params=None):
        self._log(sql, params)
        cursor = self.connection.cursor()
        cursor.execute(sql, params or ())
        return cursor.fetchall()

    def execute_insert(self, sql, params=None):
        self._log(sql, params)
        cursor = self.connection.cursor()
        cursor.execute(sql, params or ())
        return cursor.lastrowid

    def begin(self):
        self.execute("BEGIN")

    def commit(self):
        self.execute("COMMIT")

    def rollback(self):
        self.execute("ROLLBACK")

    def savepoint(self, name):
        self.execute(f"SAVEPOINT {name}")

    def rollback_to(self, name):
        self.execute(f"ROLLBACK TO SAVEPOINT {name}")

    def release(self, name):
        self.execute(f"RELEASE SAVEPOINT {name}")

    def close(self):
        self.connection.close()
