from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy import create_engine
from storefront.core.config import settings

class Base(DeclarativeBase): pass

def make_engine(dsn: str):
    # sqlite is only used for local runs; its connections must cross the threadpool
    connect_args = {'check_same_thread': False} if dsn.startswith('sqlite') else {}
    return create_engine(dsn, pool_pre_ping=True, connect_args=connect_args)

engine = make_engine(settings.POSTGRES_DSN)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
