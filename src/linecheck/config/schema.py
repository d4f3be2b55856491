from __future__ import annotations

from pydantic import BaseModel, field_validator, model_validator

from linecheck.models.defaults import (
    DEFAULT_READ_LIMIT,
    DEFAULT_SERVER_ARGS,
    DEFAULT_SERVER_PATH,
    MAX_LINE_LENGTH,
)


class HarnessConfig(BaseModel):
    """Settings for a script run, loaded from YAML and overridden by CLI flags."""

    server_path: str = DEFAULT_SERVER_PATH
    server_args: list[str] = list(DEFAULT_SERVER_ARGS)
    max_line_length: int = MAX_LINE_LENGTH
    read_limit: int = DEFAULT_READ_LIMIT
    verbose: bool = False
    defines: dict[str, str] = {}

    @field_validator("max_line_length", "read_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("line limits must be positive integers")
        return v

    @field_validator("defines", mode="before")
    @classmethod
    def stringify_defines(cls, v: object) -> object:
        # YAML turns `1` and `yes` into int/bool; script variables are strings.
        if isinstance(v, dict):
            return {str(k): "1" if val is True else "0" if val is False else str(val) for k, val in v.items()}
        return v

    @model_validator(mode="after")
    def validate_read_limit(self) -> "HarnessConfig":
        if self.read_limit <= self.max_line_length:
            raise ValueError("'read_limit' must be larger than 'max_line_length'")
        return self
