from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "LL1REPL_"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
	"""Runtime settings. Every field can be set through an `LL1REPL_<FIELD>` variable."""

	debug: bool = False
	log_level: str = "WARNING"
	workers: int = Field(default=4, ge=1)
	first_seq: int = Field(default=0, ge=0)
	eval_timeout: float = Field(default=5.0, gt=0)
	max_follow_passes: Optional[int] = Field(default=None, ge=1)
	host: str = "127.0.0.1"
	port: int = Field(default=3000, ge=1, le=65535)

	@field_validator("log_level")
	@classmethod
	def log_level_must_be_known(cls, v: str) -> str:
		level = v.strip().upper()
		if not isinstance(logging.getLevelName(level), int):
			raise ValueError(f"Unknown log level '{v}'")
		return level

	@property
	def effective_log_level(self) -> str:
		return "DEBUG" if self.debug else self.log_level

	@classmethod
	def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "Settings":
		env = os.environ if environ is None else environ
		values: Dict[str, Any] = {}
		for name in cls.model_fields:
			raw = env.get(ENV_PREFIX + name.upper())
			if raw is not None and raw != "":
				values[name] = raw
		values.update({k: v for k, v in overrides.items() if v is not None})
		return cls(**values)


def configure_logging(settings: Settings) -> None:
	logging.basicConfig(level=settings.effective_log_level, format=LOG_FORMAT)
	logging.getLogger("ll1repl").setLevel(settings.effective_log_level)
