"""Marketing modelling toolbox built around leakage-free preprocessing recipes."""

import logging

from .errors import DomainError, RecipeError, SchemaError, StateError


logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ["DomainError", "RecipeError", "SchemaError", "StateError"]
