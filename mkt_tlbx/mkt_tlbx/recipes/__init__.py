"""Preprocessing recipes: declare, add steps, prepare once, apply many times."""

from mkt_tlbx.errors import DomainError, RecipeError, SchemaError, StateError

from .recipe import Recipe, RecipeState, add_step, apply, declare, prepare
from .selectors import ByKind, ExplicitColumns, Selector, all_categorical, all_continuous, columns
from .steps import STEP_TYPES, DummyEncodeStep, LogTransformStep, NormalizeStep, Step, make_step


__all__ = [
    "STEP_TYPES",
    "ByKind",
    "DomainError",
    "DummyEncodeStep",
    "ExplicitColumns",
    "LogTransformStep",
    "NormalizeStep",
    "Recipe",
    "RecipeError",
    "RecipeState",
    "SchemaError",
    "Selector",
    "StateError",
    "Step",
    "add_step",
    "all_categorical",
    "all_continuous",
    "apply",
    "columns",
    "declare",
    "make_step",
    "prepare",
]
