from __future__ import annotations

from os import getenv

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from identity.refresh import RefreshSlot
from models.base_model import Base
from models.refresh_token import RefreshToken
from models.user import User

load_dotenv()
# Map model names for easy querying
classes = {
    "User": User,
    "RefreshToken": RefreshToken,
}


class DBStorage:
    """
    SQLAlchemy-backed storage for users and refresh slots.

    Besides the generic session helpers it implements the narrow repository
    interface the identity core depends on (user lookup/creation and the
    refresh-slot read / insert / compare-and-swap).
    """

    __engine = None
    __session = None

    def __init__(self, database_url: str | None = None):
        self.database_url = database_url

    def _create_engine(self, url: str):
        if url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every checkout gets an empty database
                kwargs["poolclass"] = StaticPool
            engine = create_engine(url, **kwargs)

            # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
            @event.listens_for(engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

            return engine
        return create_engine(url, pool_pre_ping=True)

    def reload(self, database_url: str | None = None):
        """Create engine and tables and start session"""
        if self.__session is not None:
            self.__session.remove()
        if self.__engine is not None:
            self.__engine.dispose()
        url = database_url or self.database_url or getenv("DATABASE_URL", "sqlite:///identity.db")
        self.database_url = url
        self.__engine = self._create_engine(url)
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
        try:
            self.__session.commit()
        except SQLAlchemyError:
            self.__session.rollback()
            raise

    def get(self, cls, id):
        """Fetch one object by class and ID"""
        if cls in classes.values():
            return self.__session.get(cls, id)
        return None

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session

    # identity repository interface

    def find_user_by_email(self, email: str):
        if not email:
            return None
        return self.__session.query(User).filter(User.email == email.strip().lower()).first()

    def get_user(self, user_id: str):
        return self.get(User, user_id)

    def create_user(self, **fields):
        """Insert a user; returns None when the email is already taken."""
        user = User(**fields)
        self.new(user)
        try:
            self.__session.commit()
        except IntegrityError:
            self.__session.rollback()
            return None
        return user

    def get_refresh_slot(self, user_id: str) -> RefreshSlot | None:
        row = (
            self.__session.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id)
            .populate_existing()
            .first()
        )
        return row.to_slot() if row else None

    def insert_refresh_slot(self, user_id: str, slot: RefreshSlot) -> bool:
        """Create the slot row; False if the user already has one."""
        self.new(RefreshToken(user_id=user_id, **RefreshToken.columns_for(slot)))
        try:
            self.__session.commit()
        except IntegrityError:
            self.__session.rollback()
            return False
        return True

    def swap_refresh_slot(self, user_id: str, expected_token: str, slot: RefreshSlot) -> bool:
        """
        Replace the slot only if its current token is still `expected_token`.
        A single conditional UPDATE, so concurrent rotations of the same
        token cannot both succeed.
        """
        try:
            count = (
                self.__session.query(RefreshToken)
                .filter(RefreshToken.user_id == user_id, RefreshToken.token == expected_token)
                .update(RefreshToken.columns_for(slot), synchronize_session=False)
            )
            self.__session.commit()
        except SQLAlchemyError:
            self.__session.rollback()
            raise
        return count == 1
