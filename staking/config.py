import logging
import os
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import ArithmeticOverflow, ConfigurationError
from .fixed_point import parse_units

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class PoolConfig(BaseModel):
    token: str = Field(..., min_length=1)
    reward_rate: int = Field(..., gt=0, description="Reward base units emitted per second")
    start_time: int = Field(..., ge=0)
    end_time: int

    @model_validator(mode="after")
    def check_window(self) -> "PoolConfig":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


def _require(env: dict, name: str) -> str:
    value = env.get(name)
    if value is None or not value.strip():
        raise ConfigurationError(f"{name} is not set")
    return value.strip()


def load_config(env: Optional[dict] = None) -> PoolConfig:
    """
    Build the pool parameters from environment variables.

    TOKEN, START_TIME and END_TIME are taken as-is; REWARD_PER_SECOND is a
    whole-token amount (e.g. "0.01") scaled by TOKEN_DECIMALS (default 18).
    """
    env = os.environ if env is None else env
    try:
        decimals = int(env.get("TOKEN_DECIMALS", "18"))
        config = PoolConfig(
            token=_require(env, "TOKEN"),
            reward_rate=parse_units(_require(env, "REWARD_PER_SECOND"), decimals),
            start_time=int(_require(env, "START_TIME")),
            end_time=int(_require(env, "END_TIME")),
        )
    except (ValueError, ValidationError, ArithmeticOverflow) as e:
        raise ConfigurationError(f"Invalid pool configuration: {e}")
    return config


def configure_logging(level: Optional[str] = None) -> None:
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
