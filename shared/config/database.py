from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from shared.config import settings

DATABASE_URL = settings.DATABASE_URL

# SQLite (local runs and tests) gets a fresh connection per session.
_engine_options = {"poolclass": NullPool} if DATABASE_URL.startswith("sqlite") else {"pool_pre_ping": True}

engine = create_async_engine(DATABASE_URL, echo=False, **_engine_options)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
