"""
Configuration module.

Frozen dataclass defaults, YAML symbol overrides and validation.
"""
