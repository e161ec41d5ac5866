"""Engine construction and schema initialization for the sql backend"""

from sqlmodel import SQLModel, create_engine

from postingest.crud import tables  # noqa: F401  registers table metadata


def make_engine(db_url: str):
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    return create_engine(db_url, echo=False, connect_args=connect_args)


def init_db(engine) -> None:
    """Create all tables if they do not exist."""
    SQLModel.metadata.create_all(engine)


def reset_db(engine) -> None:
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
