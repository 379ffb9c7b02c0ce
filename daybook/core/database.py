from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from daybook.core.config import settings

# 1. Fetch the Database URL from settings (which pulls from .env)
DATABASE_URL = settings.DATABASE_URL

# 2. Validation: Ensure DATABASE_URL is present
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment variables.")

# 3. Hosted Postgres URLs come as 'postgresql://' or 'postgres://'; async SQLAlchemy needs asyncpg
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
elif DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+asyncpg://", 1)

def _connect_args(url: str) -> dict:
    if url.startswith("postgresql+asyncpg://") and "localhost" not in url:
        return {"ssl": "require"}
    return {}

# 4. Create the Async Engine
engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    future=True,
    connect_args=_connect_args(DATABASE_URL),
    pool_pre_ping=True,
    pool_recycle=300
)

# 5. Create Session Factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    class_=AsyncSession,
    expire_on_commit=False
)

# 6. Base class for Models
Base = declarative_base()

# 7. Dialect-aware INSERT for ON CONFLICT upserts (Postgres in prod, SQLite in tests)
def upsert_insert(db: AsyncSession, model):
    if db.get_bind().dialect.name == "postgresql":
        return pg_insert(model)
    return sqlite_insert(model)

# 8. Dependency for FastAPI endpoints
async def get_db():
    """
    FastAPI dependency that provides a database session for each request.
    The session is closed once the request is finished.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
