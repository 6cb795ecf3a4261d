from .paths import get_data_dir, get_dataset_path
from .recipe_config import RecipeConfig


__all__ = [
    "RecipeConfig",
    "get_data_dir",
    "get_dataset_path",
]
