"""
Promote a registered user to a staff role.

There are no built-in admin accounts; run this once per operator.

Run from the backend/ directory:
    python scripts/make_admin.py user@example.com           # → ADMIN
    python scripts/make_admin.py courier@example.com COURIER
"""
import asyncio
import os
import sys

# Add backend/ to path so we can import config and models
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import update

from database import async_session
from db_models import User
from domain.enums import UserRole


async def promote(email: str, role: UserRole) -> bool:
    async with async_session() as db:
        result = await db.execute(
            update(User).where(User.email == email.strip()).values(role=role.value)
        )
        await db.commit()
        return result.rowcount > 0


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    email = sys.argv[1]
    try:
        role = UserRole(sys.argv[2].upper()) if len(sys.argv) > 2 else UserRole.ADMIN
    except ValueError:
        print(f"❌ Unknown role: {sys.argv[2]} (expected one of {[r.value for r in UserRole]})")
        sys.exit(1)

    if asyncio.run(promote(email, role)):
        print(f"✅ User {email} updated to {role.value} role")
    else:
        print(f"❌ User {email} not found")
        sys.exit(1)


if __name__ == "__main__":
    main()
