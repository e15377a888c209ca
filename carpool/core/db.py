from sqlmodel import SQLModel, create_engine

from carpool.core.config import settings

connect_args = {}
if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.SQLALCHEMY_DATABASE_URI, connect_args=connect_args)


def init_db() -> None:
    # Tables are registered on SQLModel.metadata when the models are imported
    import carpool.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
