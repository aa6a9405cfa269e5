from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from matchmaking.interfaces import DuplicateRecord


class BaseRepository:
    def __init__(self, db: Session):
        self.db = db

    def add_in_savepoint(self, obj) -> None:
        """
        Insert ``obj`` inside a SAVEPOINT.

        A unique violation raises DuplicateRecord and only the savepoint is
        rolled back, so the caller's transaction (and any advisory lock it
        holds) stays usable.
        """
        try:
            with self.db.begin_nested():
                self.db.add(obj)
                self.db.flush()
        except IntegrityError as e:
            raise DuplicateRecord(str(e.orig or e)) from e
