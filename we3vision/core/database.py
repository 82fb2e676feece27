from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from we3vision.core.config import settings

# Create SQLAlchemy engine
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,  # Verify connections before using them
    pool_size=10,
    max_overflow=20
)

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency function to get database session.
    Used in FastAPI endpoints with Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Register models with the metadata.

    Schema creation is handled by Alembic ("alembic upgrade head"),
    so this only imports the model modules.
    """
    from we3vision.models import user, blog, job, asset  # noqa: F401
