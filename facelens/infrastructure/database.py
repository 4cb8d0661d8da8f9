from sqlalchemy import JSON, Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for models
Base = declarative_base()


class UserEntity(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    username = Column(String, nullable=False, unique=True)
    password = Column(Text, nullable=False)


class FaceAnalysisEntity(Base):
    __tablename__ = "face_analyses"

    id = Column(String, primary_key=True)
    image_file_name = Column(Text, nullable=False)
    image_dimensions = Column(JSON, nullable=False)  # {"width": int, "height": int}
    detected_faces = Column(JSON, nullable=False)  # list of serialized faces
    analysis_timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    processing_time = Column(Text)


def create_db_engine(database_url: str):
    """Create an engine; in-memory SQLite shares one connection across threads"""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(engine):
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
