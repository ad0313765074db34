from pathlib import Path

from alembic.config import Config

from alembic import command

_REPO_ROOT = Path(__file__).resolve().parents[3]


def alembic_config(db_url: str, ini_path: Path | None = None) -> Config:
    ini = ini_path or _REPO_ROOT / "alembic.ini"
    cfg = Config(str(ini))
    cfg.set_main_option("script_location", str(ini.parent / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def run_migrations(db_url: str, revision: str = "head") -> None:
    command.upgrade(alembic_config(db_url), revision)


def revert_migrations(db_url: str, revision: str = "base") -> None:
    command.downgrade(alembic_config(db_url), revision)
