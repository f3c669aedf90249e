from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from backoffice.core_settings import get_settings
from backoffice.domain.models import Base

settings = get_settings()
DATABASE_URL = settings.database_url
engine = create_engine(DATABASE_URL, echo=False, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_models(bind=None):
    Base.metadata.create_all(bind or engine)
