from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from cinema.core.config import settings

# Create engine
# Seat holds and scheduling rely on row locks, so keep connections healthy
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
