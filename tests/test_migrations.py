"""The alembic revisions build the same schema as the models."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from legatepro.db.base import Base

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def _config(connection) -> Config:
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("sqlalchemy.url", "sqlite://")
    config.attributes["connection"] = connection
    config.attributes["configure_logger"] = False
    return config


def _scratch_engine():
    return create_engine("sqlite://", poolclass=StaticPool)


def test_head_matches_models():
    engine = _scratch_engine()
    with engine.begin() as connection:
        command.upgrade(_config(connection), "head")

    inspector = inspect(engine)
    tables = set(inspector.get_table_names()) - {"alembic_version"}
    assert tables == set(Base.metadata.tables)

    for name, table in Base.metadata.tables.items():
        columns = {c["name"] for c in inspector.get_columns(name)}
        assert columns == {c.name for c in table.columns}, name


def test_downgrade_to_base_drops_everything():
    engine = _scratch_engine()
    with engine.begin() as connection:
        command.upgrade(_config(connection), "head")
    with engine.begin() as connection:
        command.downgrade(_config(connection), "base")

    assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
