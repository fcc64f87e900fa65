"""
Script to grant catalog admin rights

Creates the user when the email is unknown, sets the role to admin and prints
a bearer token for the admin endpoints.

Usage:
    python create_admin.py <email> [name]

Example:
    python create_admin.py admin@example.com "Catalog Admin"
"""
import asyncio
import sys
from sqlalchemy import select

from catalog.config import settings
from catalog.core.security import create_access_token
from catalog.database import async_session_maker, init_db, close_db
from catalog.models.user import User, UserRole


async def make_admin(email: str, name: str = None):
    """Make user admin by email"""
    print("📊 Connecting to database...")
    print(f"   Database: {settings.DATABASE_URL.split('@')[-1] if '@' in settings.DATABASE_URL else 'local'}")

    await init_db()

    async with async_session_maker() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            user = User(email=email, name=name or email.split("@")[0])
            session.add(user)
            print(f"➕ User {email} created")

        user.role = UserRole.ADMIN
        await session.commit()
        await session.refresh(user)

        print(f"✅ User {email} is now ADMIN!")
        print(f"   ID: {user.id}")
        print(f"   Name: {user.name}")
        print(f"   Role: {user.role.value}")

        token = create_access_token({"user_id": user.id, "role": user.role.value})
        print("\n🔑 Access token:")
        print(f"   Bearer {token}")

    await close_db()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python create_admin.py <email> [name]")
        print("Example: python create_admin.py admin@example.com")
        sys.exit(1)

    email = sys.argv[1]
    name = sys.argv[2] if len(sys.argv) > 2 else None
    asyncio.run(make_admin(email, name))
