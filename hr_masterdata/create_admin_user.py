"""
Create the first HR Admin account.
Run once after configuring .env:  python create_admin_user.py admin@example.com
A temporary password is printed when --password is not given.
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "backend"))

from app.database import SessionLocal, init_db  # noqa: E402
from app.exceptions import ApiError  # noqa: E402
from app.permission_config import UserRole  # noqa: E402
from app.services.user_service import UserService  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Create an HR Admin user")
    parser.add_argument("email")
    parser.add_argument("--password", help="At least 8 characters; generated when omitted")
    args = parser.parse_args()

    if args.password is not None and len(args.password) < 8:
        print("[ERROR] Password must be at least 8 characters")
        sys.exit(1)

    init_db()
    db = SessionLocal()
    try:
        user, password = UserService.create_user(db, args.email, UserRole.HR_ADMIN.value, password=args.password)
    except ApiError as e:
        print(f"[ERROR] {e.message}")
        sys.exit(1)
    finally:
        db.close()

    print("[SUCCESS] HR Admin created")
    print(f"User ID: {user.id}")
    print(f"Email:   {user.email}")
    if args.password is None:
        print(f"Temporary password: {password}")


if __name__ == "__main__":
    main()
