# enrollment_portal/services/locking.py
from typing import Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

T = TypeVar("T")


def lock_row(db: Session, model: Type[T], row_id: int) -> Optional[T]:
    """
    SELECT ... FOR UPDATE on a single row, refreshing any stale copy held in
    the identity map. Held until the surrounding transaction ends; SQLite
    ignores the lock clause.
    """
    # populate_existing overwrites unflushed attribute changes
    db.flush()
    return db.execute(
        select(model)
        .where(model.id == row_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
