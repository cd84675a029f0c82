# promptkit/config/__init__.py
"""
Configuration for promptkit: the RenderOptions model and TOML loading.
"""
from .settings import RenderOptions
from .loader import load_and_merge_configs, select_profile

__all__ = ["RenderOptions", "load_and_merge_configs", "select_profile"]
