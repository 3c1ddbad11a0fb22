import pymysql
from contextlib import contextmanager

from . import config


def connect():
    return pymysql.connect(
        host=config.DB_HOST,
        user=config.DB_USER,
        password=config.DB_PASS,
        database=config.DB_NAME,
        charset='utf8mb4',
        cursorclass=pymysql.cursors.DictCursor,
        autocommit=False
    )

@contextmanager
def get_db():
    conn = connect()
    try:
        yield conn
    finally:
        conn.close()

@contextmanager
def transaction():
    """Yield a connection inside a transaction.

    Commits when the block exits normally; rolls back and re-raises otherwise.
    """
    with get_db() as conn:
        conn.begin()
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        conn.commit()

def execute(conn, sql, params=None):
    """Run a statement on an open connection and return the affected row count."""
    with conn.cursor() as cursor:
        cursor.execute(sql, params or ())
        return cursor.rowcount

def query_one(conn, sql, params=None):
    with conn.cursor() as cursor:
        cursor.execute(sql, params or ())
        return cursor.fetchone()

def query_all(conn, sql, params=None):
    with conn.cursor() as cursor:
        cursor.execute(sql, params or ())
        return cursor.fetchall()

def execute_query(sql, params=None):
    with get_db() as conn:
        with conn.cursor() as cursor:
            cursor.execute(sql, params or ())
            conn.commit()
            return cursor.rowcount

def fetch_one(sql, params=None):
    with get_db() as conn:
        return query_one(conn, sql, params)

def fetch_all(sql, params=None):
    with get_db() as conn:
        return query_all(conn, sql, params)

def insert(table, data, conn=None):
    cols = list(data.keys())
    vals = list(data.values())
    placeholders = ','.join(['%s'] * len(cols))
    sql = f"INSERT INTO `{table}` ({','.join([f'`{col}`' for col in cols])}) VALUES ({placeholders})"
    if conn is not None:
        with conn.cursor() as cursor:
            cursor.execute(sql, vals)
            return cursor.lastrowid
    with get_db() as own:
        with own.cursor() as cursor:
            cursor.execute(sql, vals)
            own.commit()
            return cursor.lastrowid
