"""
Create an admin user (admins cannot self-register).

Run from project root:
  python scripts/create_admin.py <email> <password> [first_name] [last_name]
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from fastapi import HTTPException

from realty.database import Base, SessionLocal, engine
from realty.models.user import UserRole
from realty.services.accounts import create_account, find_user_by_email
from realty.services.auth import password_strength_error


def main():
    if len(sys.argv) < 3:
        print("Usage: python scripts/create_admin.py <email> <password> [first_name] [last_name]")
        sys.exit(1)
    email, password = sys.argv[1].strip().lower(), sys.argv[2]
    first_name = sys.argv[3] if len(sys.argv) > 3 else "Admin"
    last_name = sys.argv[4] if len(sys.argv) > 4 else "User"

    weak = password_strength_error(password)
    if weak:
        print(f"Error: {weak}")
        sys.exit(1)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if find_user_by_email(db, email):
            print(f"User already exists: {email}")
            sys.exit(0)
        user, _ = create_account(
            db,
            email=email,
            password=password,
            role=UserRole.ADMIN,
            first_name=first_name,
            last_name=last_name,
        )
        print(f"Created admin: {user.email} (id={user.id})")
    except HTTPException as e:
        print(f"Error: {e.detail}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
