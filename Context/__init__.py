from .Reader import ContextReader, SeedConfig, merge_with_config, parse_context

__all__ = ["ContextReader", "SeedConfig", "merge_with_config", "parse_context"]
