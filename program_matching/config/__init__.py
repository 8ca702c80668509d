"""Configuration: environment settings and matching lookup tables."""

from .config import Config, load_config, validate_config
from .lexicon import DEFAULT_LEXICON, MatchingLexicon, load_lexicon

__all__ = [
    "Config",
    "load_config",
    "validate_config",
    "DEFAULT_LEXICON",
    "MatchingLexicon",
    "load_lexicon",
]
