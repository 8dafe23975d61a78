"""
Read-only gate for generated SQL.

The check is deliberately crude: an uppercase prefix test followed by a plain
substring scan. It over-rejects (a string literal containing "DROP") and
under-rejects (anything that starts with SELECT and avoids the listed tokens),
and callers rely on exactly that behavior.
"""

import logging

logger = logging.getLogger(__name__)

DENYLISTED_TOKENS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "EXEC",
    "EXECUTE",
    "SP_",
    "XP_",
)


def is_safe_sql(sql) -> bool:
    """
    Return True only for text that starts with SELECT and contains none of the
    denylisted tokens anywhere (case-insensitive). Never raises.
    """
    try:
        upper_sql = sql.upper().strip()

        if not upper_sql.startswith("SELECT"):
            return False

        for token in DENYLISTED_TOKENS:
            if token in upper_sql:
                logger.info(f"SQL rejected, contains denylisted token {token}")
                return False

        return True
    except Exception:
        return False
