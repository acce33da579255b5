"""Set an admin's password (and optionally recovery email) from the command line.

    python reset_pw.py <username> <new_password> [email]

Creates the admin when the username doesn't exist yet.
"""
import os
import sys

os.chdir(os.path.dirname(os.path.abspath(__file__)))

from app.core.auth import hash_password, validate_new_password
from app.core.database import SessionLocal, init_db
from app.core.errors import ValidationError
from app.models.admin_user import AdminUser


def main(argv):
    if len(argv) not in (3, 4):
        print(__doc__)
        return 2
    username, password = argv[1], argv[2]
    email = argv[3] if len(argv) == 4 else None

    try:
        validate_new_password(password)
    except ValidationError as e:
        print(e.message)
        return 1

    init_db()
    db = SessionLocal()
    try:
        admin = db.query(AdminUser).filter(AdminUser.username == username).first()
        if admin is None:
            admin = AdminUser(username=username, email=email or "")
            db.add(admin)
        elif email is not None:
            admin.email = email
        admin.password_hash = hash_password(password)
        db.commit()
    finally:
        db.close()
    print(f"Password set OK for {username}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
