"""
Database connectivity and task statistics check
"""
import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.db.database import AsyncSessionLocal
from app.db.crud import get_user_count
from app.db.crud import task as task_crud
from app.db.models import TaskStatus
from sqlalchemy import text
from loguru import logger

async def check_database():
    """Check database connectivity and table status"""
    logger.info("🔍 Checking database connectivity...")

    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
            logger.info("✅ Database connection successful")

            logger.info("📊 Database statistics:")
            logger.info(f"   Users: {await get_user_count(db)}")
            logger.info(f"   Tasks: {await task_crud.count_tasks(db)}")
            for task_status in TaskStatus:
                count = await task_crud.count_tasks(db, status_filter=task_status)
                logger.info(f"   {task_status.value}: {count}")

    except Exception as e:
        logger.error(f"❌ Database check failed: {e}")
        raise

if __name__ == "__main__":
    asyncio.run(check_database())
