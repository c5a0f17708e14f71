import argparse
import getpass
import os
import sys

# Add current directory to path so we can import app modules
sys.path.append(os.getcwd())

from app.core.database import SessionLocal, engine
from app.core.enums import Department, Role
from app.core.security import get_password_hash
from app.models import Base, User


def create_admin(email: str, password: str, first_name: str, last_name: str, department: str, role: str):
    Base.metadata.create_all(bind=engine)
    print("✓ Tables verified")

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.hashed_password = get_password_hash(password)
            user.role = role
            user.is_active = True
            db.commit()
            print(f"✓ User already existed, password and role reset: {email}")
            return

        db.add(User(
            email=email,
            hashed_password=get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            department=department,
            role=role,
            is_active=True,
        ))
        db.commit()
        print(f"✓ {role} user created: {email}")

    except Exception as e:
        db.rollback()
        print(f"❌ Error: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or reset a band office user")
    parser.add_argument("email")
    parser.add_argument("--first-name", default="Band")
    parser.add_argument("--last-name", default="Admin")
    parser.add_argument("--department", choices=[d.value for d in Department], default=Department.FINANCE.value)
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.ADMIN.value)
    args = parser.parse_args()

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < 8:
        sys.exit("Password must be at least 8 characters")

    create_admin(args.email.lower(), password, args.first_name, args.last_name, args.department, args.role)
