"""
Create a user (e.g. the first admin). Run from project root:
  python -m portal.scripts.create_user EMAIL PASSWORD NAME [ROLE]
Example:
  python -m portal.scripts.create_user admin@example.org your-secure-password "Site Admin" ADMIN
"""
import argparse
import sys

from portal.core.database import SessionLocal
from portal.core.roles import VALID_ROLES, Role, UserStatus
from portal.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from portal.models import User
from portal.services.auth import is_valid_email, normalize_email


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a portal user (outside the invitation flow).")
    parser.add_argument("email", help="Email address (used to log in)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("name", help="Display name")
    parser.add_argument("role", nargs="?", default=Role.ADMIN.value, choices=VALID_ROLES)
    args = parser.parse_args()

    email = normalize_email(args.email)
    if not is_valid_email(email):
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    name = args.name.strip()
    if not name:
        print("Name is required.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            email=email,
            name=name,
            password_hash=hash_password(args.password),
            role=args.role,
            status=UserStatus.ACTIVE.value,
        )
        db.add(user)
        db.commit()
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
