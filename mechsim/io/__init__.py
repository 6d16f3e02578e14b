"""Configuration input/output."""

from mechsim.io.serializers import load_config, save_config, to_builtin

__all__ = ["save_config", "load_config", "to_builtin"]
