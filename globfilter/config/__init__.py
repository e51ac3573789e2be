from .settings import FilterConfig, config_defaults, read_pattern_file

__all__ = ["FilterConfig", "config_defaults", "read_pattern_file"]
