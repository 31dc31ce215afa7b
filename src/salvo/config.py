"""Match configuration loaded from arguments or the environment."""

from __future__ import annotations

import os
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

from salvo.ai.difficulty import AIOption
from salvo.ai.targeting import DEFAULT_SEARCH_ATTEMPTS
from salvo.telemetry.config import ENV_PREFIX


class GameConfig(BaseModel):
    """Board size, opponent difficulty and randomness for one match."""

    width: int = Field(default=10, ge=1)
    height: int = Field(default=10, ge=1)
    difficulty: AIOption = AIOption.MEDIUM
    seed: int | None = None
    search_attempts: int = Field(default=DEFAULT_SEARCH_ATTEMPTS, ge=1)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _parse_difficulty(cls, value: Any) -> AIOption:
        return AIOption.parse(value)

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameConfig":
        """Construct config from `SALVO_*` env vars; explicit overrides win."""

        data: Dict[str, Any] = {}
        env_fields = {
            "width": "WIDTH",
            "height": "HEIGHT",
            "difficulty": "DIFFICULTY",
            "seed": "SEED",
            "search_attempts": "SEARCH_ATTEMPTS",
        }
        for field, suffix in env_fields.items():
            value = os.getenv(f"{ENV_PREFIX}{suffix}")
            if value is not None and value.strip():
                data[field] = value.strip()

        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)
