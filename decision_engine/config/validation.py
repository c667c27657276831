"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_selector_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate strategy selector parameters."""
        errors = []

        # Validate min_suitability
        if "min_suitability" in params:
            value = params["min_suitability"]
            if not _is_number(value) or value < 0 or value >= 1:
                errors.append(ValidationError(
                    field="min_suitability",
                    message="Must be a number in [0, 1)",
                    value=value
                ))

        # Validate top_n
        if "top_n" in params:
            value = params["top_n"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                errors.append(ValidationError(
                    field="top_n",
                    message="Must be a positive integer",
                    value=value
                ))

        # Validate jitter_pct
        if "jitter_pct" in params:
            value = params["jitter_pct"]
            if not _is_number(value) or value < 0 or value > 0.5:
                errors.append(ValidationError(
                    field="jitter_pct",
                    message="Must be a number between 0 and 0.5",
                    value=value
                ))

        # Validate jitter_seed
        if "jitter_seed" in params:
            value = params["jitter_seed"]
            if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
                errors.append(ValidationError(
                    field="jitter_seed",
                    message="Must be an integer or null",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_scenario_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate scenario weighting parameters."""
        errors = []

        for weight_field in ("htf_weight", "liquidity_weight", "structure_weight", "news_weight"):
            if weight_field in params:
                value = params[weight_field]
                if not _is_number(value) or value < 0:
                    errors.append(ValidationError(
                        field=weight_field,
                        message="Must be a non-negative number",
                        value=value
                    ))

        # Validate viability_threshold
        if "viability_threshold" in params:
            value = params["viability_threshold"]
            if not _is_number(value) or value < 0 or value > 100:
                errors.append(ValidationError(
                    field="viability_threshold",
                    message="Must be a number between 0 and 100",
                    value=value
                ))

        # Validate liquidity_tolerance_pct
        if "liquidity_tolerance_pct" in params:
            value = params["liquidity_tolerance_pct"]
            if not _is_number(value) or value <= 0 or value > 1:
                errors.append(ValidationError(
                    field="liquidity_tolerance_pct",
                    message="Must be a positive number between 0 and 1",
                    value=value
                ))

        # Validate structure_window
        if "structure_window" in params:
            value = params["structure_window"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                errors.append(ValidationError(
                    field="structure_window",
                    message="Must be a positive integer",
                    value=value
                ))

        # Validate max_alternatives
        if "max_alternatives" in params:
            value = params["max_alternatives"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(ValidationError(
                    field="max_alternatives",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_performance_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate performance weighting parameters."""
        errors = []

        if "window" in params:
            value = params["window"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                errors.append(ValidationError(
                    field="window",
                    message="Must be a positive integer",
                    value=value
                ))

        min_weight = params.get("min_weight")
        max_weight = params.get("max_weight")
        if min_weight is not None and (not _is_number(min_weight) or min_weight < 0):
            errors.append(ValidationError(
                field="min_weight",
                message="Must be a non-negative number",
                value=min_weight
            ))
        if (_is_number(min_weight) and _is_number(max_weight)
                and max_weight < min_weight):
            errors.append(ValidationError(
                field="max_weight",
                message="Must be greater than or equal to min_weight",
                value=max_weight
            ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
                errors.append(ValidationError(
                    field="level",
                    message=f"Must be one of {', '.join(_LOG_LEVELS)}",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "selector" in config:
            errors.extend(ConfigValidator.validate_selector_params(config["selector"]))

        if "scenario" in config:
            errors.extend(ConfigValidator.validate_scenario_params(config["scenario"]))

        if "performance" in config:
            errors.extend(ConfigValidator.validate_performance_params(config["performance"]))

        if "logging" in config:
            errors.extend(ConfigValidator.validate_logging_params(config["logging"]))

        return errors
