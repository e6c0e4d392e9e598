import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine

from app.core.config import DATABASE_URL, DB_ECHO
from app.core.exceptions import DependencyWriteFailure, DomainError

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=DB_ECHO, connect_args=connect_args)

def create_db_and_tables():
    import app.models  # noqa: F401  registra las tablas en el metadata
    SQLModel.metadata.create_all(engine)

def get_session():
    with Session(engine) as session:
        yield session

@contextmanager
def atomic(session: Session, action: str):
    """
    Ejecuta el bloque como una sola unidad: commit al final, o rollback
    completo si algo falla. Los errores de base de datos salen como
    DependencyWriteFailure; los de dominio se relanzan tal cual.
    """
    try:
        yield session
        session.commit()
    except DomainError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Write rolled back", extra={"action": action, "error": str(exc)})
        raise DependencyWriteFailure(f"No se pudo {action}; no se guardó ningún cambio.") from exc
