"""Shared recipe configuration (step defaults and logging)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Literal


_ENV_PREFIX = "MKT_TLBX_"
_PACKAGE_LOGGER = "mkt_tlbx"


@dataclass(frozen=True)
class RecipeConfig:
    """Defaults applied to steps added to a recipe, plus logging setup.

    Explicit step configuration always wins over these defaults.
    """

    dummy_separator: str = "_"
    """Separator between column name and level in dummy column names."""
    unseen_levels: Literal["ignore", "error"] = "ignore"
    """Policy for categorical levels absent at preparation: all-zero indicators or ``DomainError``."""
    log_offset: float = 0.0
    """Additive offset applied before taking the natural log."""
    log_level: str = "WARNING"
    """Level for the ``mkt_tlbx`` logger when :meth:`apply_global` is called."""
    log_format: str = "%(levelname)s %(name)s: %(message)s"

    def __post_init__(self) -> None:
        if self.unseen_levels not in ("ignore", "error"):
            raise ValueError(f"Invalid unseen_levels='{self.unseen_levels}'. Use 'ignore' or 'error'.")
        if not self.dummy_separator:
            raise ValueError("dummy_separator must be a non-empty string.")

    @classmethod
    def from_env(cls, **overrides: object) -> "RecipeConfig":
        """Build a config from ``MKT_TLBX_*`` environment variables.

        ``MKT_TLBX_LOG_OFFSET=1`` for example sets ``log_offset=1.0``. Keyword
        overrides take precedence over the environment.
        """
        values: dict[str, object] = {}
        for f in fields(cls):
            raw = os.environ.get(f"{_ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue
            values[f.name] = float(raw) if f.name == "log_offset" else raw
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    def step_defaults(self, kind: str) -> dict[str, object]:
        """Return the default configuration for a step kind."""
        if kind == "log_transform":
            return {"offset": self.log_offset}
        if kind == "dummy_encode":
            return {"separator": self.dummy_separator, "unseen": self.unseen_levels}
        return {}

    def apply_global(self) -> logging.Logger:
        """Configure the package logger (no automatic restore).

        Intended for notebooks and scripts that want recipe preparation and
        drift warnings printed once at the top of the document.
        """
        logger = logging.getLogger(_PACKAGE_LOGGER)
        logger.setLevel(self.log_level.upper())
        if not any(getattr(h, "_mkt_tlbx", False) for h in logger.handlers):
            handler = logging.StreamHandler()
            handler._mkt_tlbx = True  # type: ignore[attr-defined]
            logger.addHandler(handler)
        for handler in logger.handlers:
            if getattr(handler, "_mkt_tlbx", False):
                handler.setFormatter(logging.Formatter(self.log_format))
        return logger
