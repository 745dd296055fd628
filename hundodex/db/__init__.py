from hundodex.db.database import get_session, init_db
from hundodex.db.operations import (
    create_account,
    create_auth_session,
    delete_auth_session,
    delete_rows,
    get_account_by_email,
    get_auth_session,
    insert_row,
    query_rows,
    update_rows,
)
from hundodex.db.row_store import RowStore, SqlRowStore

__all__ = [
    "RowStore",
    "SqlRowStore",
    "create_account",
    "create_auth_session",
    "delete_auth_session",
    "delete_rows",
    "get_account_by_email",
    "get_auth_session",
    "get_session",
    "init_db",
    "insert_row",
    "query_rows",
    "update_rows",
]
