"""Create a user and a user-bound API key for local use."""
from __future__ import annotations

import argparse

from sqlalchemy import select

from app.db import get_sessionmaker, init_engine
from app.models.api_key import ApiKey, ApiScope
from app.models.user import User
from app.utils.apikey import gen_key


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--username", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--scope", choices=[scope.value for scope in ApiScope], default=ApiScope.coordinator.value)
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    init_engine()
    db = get_sessionmaker()()

    try:
        user = db.scalar(select(User).where(User.username == args.username))
        if user is None:
            user = User(username=args.username, email=args.email)
            db.add(user)
            db.flush()

        raw, prefix, key_hash = gen_key()
        api_key = ApiKey(
            name=f"{args.username}-{prefix}",
            prefix=prefix,
            key_hash=key_hash,
            scope=ApiScope(args.scope),
            user_id=user.id,
        )
        db.add(api_key)
        db.commit()

        print("==========================================")
        print("API key created")
        print(f"    user: {user.username} ({user.id})")
        print(f"    scope: {api_key.scope.value}")
        print(f"    X-API-Key: {raw}")
        print("==========================================")
    finally:
        db.close()


if __name__ == "__main__":
    main()
