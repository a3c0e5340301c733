"""
Configuration de la session SQLAlchemy
Fournit l'engine, la factory de sessions, et la dependency FastAPI
"""
import logging
import os
import tempfile
import weakref
from typing import Generator, Optional, Tuple

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from smartpolice.core.config import settings

logger = logging.getLogger(__name__)


# === 1. ENGINE ===
#
# Le store par défaut (`sqlite://`) est propre au processus : une base
# SQLite dans un répertoire temporaire, supprimée avec l'engine. Chaque
# session obtient sa propre connexion, donc sa propre transaction ; le
# rollback d'une requête ne peut pas annuler le travail d'une autre.

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _process_scoped_sqlite_url() -> Tuple[str, tempfile.TemporaryDirectory]:
    workdir = tempfile.TemporaryDirectory(prefix="smartpolice-", ignore_cleanup_errors=True)
    return f"sqlite:///{os.path.join(workdir.name, 'store.db')}", workdir


def build_engine(database_url: str) -> Engine:
    """Construit l'engine adapté au type de base."""
    if database_url.startswith("sqlite"):
        workdir = None
        if database_url in IN_MEMORY_URLS:
            database_url, workdir = _process_scoped_sqlite_url()
        sqlite_engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=False,
        )
        if workdir is not None:
            weakref.finalize(sqlite_engine, workdir.cleanup)
        return sqlite_engine

    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=False,
    )


engine = build_engine(settings.DATABASE_URL)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Active les clés étrangères sur SQLite (désactivées par défaut)."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# === 2. SESSION LOCAL (Factory de sessions) ===

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# === 3. DEPENDENCY FASTAPI ===

def get_db() -> Generator[Session, None, None]:
    """
    Dépendance FastAPI pour obtenir une session DB.

    Commit si la requête se termine sans erreur, rollback sinon.

    Example:
        @router.get("/clients")
        def list_clients(db: Session = Depends(get_db)):
            return db.query(Client).all()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


class db_session:
    """
    Context manager pour utiliser une session hors FastAPI.

    Gère automatiquement le commit/rollback et la fermeture.

    Usage:
        with db_session() as db:
            client = db.get(Client, 1)
    """

    def __init__(self, commit_on_exit: bool = True):
        self.db: Optional[Session] = None
        self.commit_on_exit = commit_on_exit

    def __enter__(self) -> Session:
        self.db = SessionLocal()
        return self.db

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None and self.commit_on_exit:
                self.db.commit()
            else:
                self.db.rollback()
        finally:
            self.db.close()

        return False


# === 4. VÉRIFICATION DE CONNEXION ===

def check_database_connection() -> bool:
    """
    Vérifie que la connexion à la base de données fonctionne.

    Utilisé par le endpoint /health.
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"❌ Erreur de connexion à la base de données : {e}")
        return False
