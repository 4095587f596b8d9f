"""
Dashboard user and refresh-token persistence.
"""

from __future__ import annotations

from datetime import datetime, timezone

from core import db

_USER_COLUMNS = "id, email, password_hash, is_active, created_at, updated_at"
_REFRESH_TOKEN_COLUMNS = """
    id, user_id, token_hash, expires_at, revoked_at,
    replaced_by_token_id, created_at, last_used_at, user_agent, ip_address
"""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(*, email: str, password_hash: str, is_active: bool = True) -> dict:
    row = await db.fetch_one(
        f"""
        INSERT INTO users (email, password_hash, is_active)
        VALUES ($1, $2, $3)
        RETURNING {_USER_COLUMNS}
        """,
        normalize_email(email),
        password_hash,
        is_active,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_USER_COLUMNS}
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_USER_COLUMNS}
        FROM users
        WHERE id = $1
        """,
        user_id,
    )


async def insert_refresh_token(
    *,
    user_id: int,
    token_hash: str,
    expires_at: datetime,
    user_agent: str | None = None,
    ip_address: str | None = None,
    replaces_token_id: int | None = None,
) -> dict:
    """
    Store a new refresh token; when `replaces_token_id` is given, the old
    token is revoked and linked to the new one in the same transaction.
    """
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    async with db.pool().acquire() as conn:
        async with conn.transaction():
            row = await conn.fetchrow(
                f"""
                INSERT INTO refresh_tokens (user_id, token_hash, expires_at, user_agent, ip_address)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING {_REFRESH_TOKEN_COLUMNS}
                """,
                user_id,
                token_hash,
                expires_at,
                user_agent,
                ip_address,
            )
            if row is None:
                raise RuntimeError("Failed to insert refresh token.")

            if replaces_token_id is not None:
                await conn.execute(
                    """
                    UPDATE refresh_tokens
                    SET revoked_at = COALESCE(revoked_at, now()),
                        last_used_at = now(),
                        replaced_by_token_id = $2
                    WHERE id = $1
                    """,
                    replaces_token_id,
                    int(row["id"]),
                )
            return db.record_to_dict(row)


async def get_refresh_token_by_hash(token_hash: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_REFRESH_TOKEN_COLUMNS}
        FROM refresh_tokens
        WHERE token_hash = $1
        """,
        token_hash,
    )


async def revoke_refresh_token_by_hash(token_hash: str) -> bool:
    row = await db.fetch_one(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE token_hash = $1
          AND revoked_at IS NULL
        RETURNING id
        """,
        token_hash,
    )
    return row is not None


async def revoke_refresh_token_by_id(token_id: int) -> bool:
    row = await db.fetch_one(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE id = $1
          AND revoked_at IS NULL
        RETURNING id
        """,
        token_id,
    )
    return row is not None


async def revoke_all_refresh_tokens_for_user(user_id: int) -> int:
    count = await db.fetch_value(
        """
        WITH revoked AS (
            UPDATE refresh_tokens
            SET revoked_at = now()
            WHERE user_id = $1
              AND revoked_at IS NULL
            RETURNING id
        )
        SELECT count(*) FROM revoked
        """,
        user_id,
    )
    return int(count or 0)
