"""
Persistence gateway: SQLAlchemy-backed and in-memory storage
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from ..domain.interfaces import AnalysisStorageInterface
from ..domain.models import (
    FaceAnalysisRecord,
    ImageDimensions,
    NewFaceAnalysis,
    NewUser,
    RefinedFace,
    User,
)
from .database import FaceAnalysisEntity, UserEntity, create_db_engine, create_session_factory

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DuplicateUsernameError(ValueError):
    """Raised when creating a user whose username is taken"""


class MemoryStorage(AnalysisStorageInterface):
    """Process-local storage, used when no database is configured"""

    name = "memory"

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock
        self.users: Dict[str, User] = {}
        self.analyses: Dict[str, FaceAnalysisRecord] = {}

    def create_analysis(self, analysis: NewFaceAnalysis) -> FaceAnalysisRecord:
        record = FaceAnalysisRecord(
            id=str(uuid.uuid4()),
            image_file_name=analysis.image_file_name,
            image_dimensions=analysis.image_dimensions,
            detected_faces=tuple(analysis.detected_faces),
            analysis_timestamp=self.clock(),
            processing_time=analysis.processing_time or None,
        )
        self.analyses[record.id] = record
        return record

    def list_analyses(self, limit: int = 10) -> List[FaceAnalysisRecord]:
        # Reversed insertion order keeps equal timestamps newest-first
        newest_first = sorted(
            reversed(list(self.analyses.values())),
            key=lambda record: record.analysis_timestamp,
            reverse=True,
        )
        return newest_first[:max(0, limit)]

    def get_analysis(self, analysis_id: str) -> Optional[FaceAnalysisRecord]:
        return self.analyses.get(analysis_id)

    def create_user(self, user: NewUser) -> User:
        if self.get_user_by_username(user.username) is not None:
            raise DuplicateUsernameError(f"Username already exists: {user.username}")
        created = User(id=str(uuid.uuid4()), username=user.username, password=user.password)
        self.users[created.id] = created
        return created

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)


class SQLAlchemyStorage(AnalysisStorageInterface):
    """SQLAlchemy implementation of the persistence gateway"""

    name = "database"

    def __init__(self, session_factory, clock: Clock = utc_now):
        self.session_factory = session_factory
        self.clock = clock

    @classmethod
    def from_url(cls, database_url: str, clock: Clock = utc_now) -> "SQLAlchemyStorage":
        engine = create_db_engine(database_url)
        return cls(create_session_factory(engine), clock=clock)

    def create_analysis(self, analysis: NewFaceAnalysis) -> FaceAnalysisRecord:
        entity = FaceAnalysisEntity(
            id=str(uuid.uuid4()),
            image_file_name=analysis.image_file_name,
            image_dimensions=analysis.image_dimensions.to_dict(),
            detected_faces=[face.to_dict() for face in analysis.detected_faces],
            analysis_timestamp=self.clock(),
            processing_time=analysis.processing_time or None,
        )
        with self.session_factory() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return self._analysis_to_domain(entity)

    def list_analyses(self, limit: int = 10) -> List[FaceAnalysisRecord]:
        with self.session_factory() as session:
            entities = (
                session.query(FaceAnalysisEntity)
                .order_by(FaceAnalysisEntity.analysis_timestamp.desc())
                .limit(max(0, limit))
                .all()
            )
            return [self._analysis_to_domain(entity) for entity in entities]

    def get_analysis(self, analysis_id: str) -> Optional[FaceAnalysisRecord]:
        with self.session_factory() as session:
            entity = session.get(FaceAnalysisEntity, analysis_id)
            return self._analysis_to_domain(entity) if entity else None

    def create_user(self, user: NewUser) -> User:
        entity = UserEntity(id=str(uuid.uuid4()), username=user.username, password=user.password)
        with self.session_factory() as session:
            session.add(entity)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateUsernameError(f"Username already exists: {user.username}") from e
            return self._user_to_domain(entity)

    def get_user(self, user_id: str) -> Optional[User]:
        with self.session_factory() as session:
            entity = session.get(UserEntity, user_id)
            return self._user_to_domain(entity) if entity else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self.session_factory() as session:
            entity = (
                session.query(UserEntity)
                .filter(UserEntity.username == username)
                .first()
            )
            return self._user_to_domain(entity) if entity else None

    def _analysis_to_domain(self, entity: FaceAnalysisEntity) -> FaceAnalysisRecord:
        """Convert database entity to domain model."""
        timestamp = entity.analysis_timestamp
        if timestamp.tzinfo is None:
            # SQLite drops tzinfo; values are stored as UTC
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        dims = entity.image_dimensions
        return FaceAnalysisRecord(
            id=entity.id,
            image_file_name=entity.image_file_name,
            image_dimensions=ImageDimensions(dims["width"], dims["height"]),
            detected_faces=tuple(RefinedFace.from_dict(f) for f in entity.detected_faces),
            analysis_timestamp=timestamp,
            processing_time=entity.processing_time,
        )

    def _user_to_domain(self, entity: UserEntity) -> User:
        return User(id=entity.id, username=entity.username, password=entity.password)


def create_storage(config) -> AnalysisStorageInterface:
    """Pick the backend once at startup: database when DATABASE_URL is set, memory otherwise"""
    if config.DATABASE_URL:
        logger.info("Using database storage")
        return SQLAlchemyStorage.from_url(config.DATABASE_URL)
    logger.info("DATABASE_URL not set, using in-memory storage")
    return MemoryStorage()
