"""VibeRecipe: turn recipe URLs, text and photos into structured recipes."""

__version__ = "1.0.0"
