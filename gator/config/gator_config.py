from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class GatorConfig(BaseModel):
    """
    The per-user JSON config file: where the database lives and who is logged in.
    """

    db_url: str = Field(default="")
    current_user_name: str = Field(default="")

    def set_user(self, username: str, path: str | Path) -> None:
        logger.info("Setting current user to %s", username)
        self.current_user_name = username
        write_config(self, path)


def read_config(path: str | Path) -> GatorConfig:
    p = Path(path).expanduser()
    if not p.exists():
        return GatorConfig()
    return GatorConfig.model_validate_json(p.read_text(encoding="utf-8"))


def write_config(cfg: GatorConfig, path: str | Path) -> None:
    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(cfg.model_dump_json(), encoding="utf-8")
