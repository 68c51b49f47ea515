"""
Create an admin user for the Taskboard API
"""
import asyncio
import sys
from pathlib import Path
import getpass

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.db.database import AsyncSessionLocal, init_db
from app.db.crud.user import create_user_db, get_user_by_email
from app.db.models import UserRole
from app.auth.security import Hasher
from app.api.v1.schemas.auth import check_password_complexity
from loguru import logger

async def create_admin_user():
    """Create admin user interactively"""
    logger.info("👤 Creating admin user for the Taskboard API...")

    name = input("Enter admin name: ").strip()
    email = input("Enter admin email: ").strip()
    if not name or not email:
        logger.error("Name and email are required")
        return

    password = getpass.getpass("Enter admin password: ")
    try:
        check_password_complexity(password)
    except ValueError as e:
        logger.error(str(e))
        return

    password_confirm = getpass.getpass("Confirm password: ")
    if password != password_confirm:
        logger.error("Passwords don't match")
        return

    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            existing_user = await get_user_by_email(db, email)
            if existing_user:
                logger.warning(f"User {email} already exists")
                return

            user = await create_user_db(db, {
                "name": name,
                "email": email,
                "hashed_password": Hasher.get_password_hash(password),
                "role": UserRole.ADMIN,
                "is_active": True
            })
            logger.info(f"✅ Admin user created: {user.email} (UUID: {user.uuid})")

        except Exception as e:
            logger.error(f"❌ Failed to create admin user: {e}")
            raise

if __name__ == "__main__":
    asyncio.run(create_admin_user())
