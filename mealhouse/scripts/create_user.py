"""
Create an account (e.g. the first admin). Run from project root:
  python -m mealhouse.scripts.create_user EMAIL PASSWORD [role]
Example:
  python -m mealhouse.scripts.create_user admin@example.com your-secure-password admin
"""
import argparse
import sys

from dotenv import load_dotenv

from mealhouse.core.config import load_settings
from mealhouse.core.database import Database
from mealhouse.core.errors import EmailAlreadyRegistered
from mealhouse.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from mealhouse.domain.enums import Role
from mealhouse.services.users import register_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Mealhouse account.")
    parser.add_argument("email", help=f"Login email (max {EMAIL_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=Role.USER.value, choices=[r.value for r in Role])
    parser.add_argument("--name", default=None, help="Display name")
    args = parser.parse_args(argv)

    email = args.email.strip()
    if not email or "@" not in email or len(email) > EMAIL_MAX_LEN:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    load_dotenv()
    settings = load_settings()
    database = Database(settings)
    db = database.session()
    try:
        user = register_user(
            db,
            email=email,
            password=args.password,
            name=args.name,
            role=Role(args.role),
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
            allow_admin=True,
        )
    except EmailAlreadyRegistered:
        print(f"Account '{email}' already exists.", file=sys.stderr)
        return 1
    finally:
        db.close()
        database.dispose()
    print(f"Created account '{user.email}' with role '{user.role}' (id {user.id}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
