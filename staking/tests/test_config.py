
import pytest
from pydantic import ValidationError

from staking.config import PoolConfig, load_config
from staking.errors import ConfigurationError

ENV = {
    "TOKEN": "0x5FbDB2315678afecb367f032d93F642f64180aa3",
    "REWARD_PER_SECOND": "0.01",
    "START_TIME": "1700000000",
    "END_TIME": "1700010000",
}


class TestPoolConfig:
    """Tests for construction-time validation."""

    def test_valid_config(self):
        config = PoolConfig(token="FUND", reward_rate=1, start_time=0, end_time=1)
        assert config.end_time == 1

    def test_window_must_be_ordered(self):
        with pytest.raises(ValidationError):
            PoolConfig(token="FUND", reward_rate=1, start_time=10, end_time=10)

    def test_reward_rate_must_be_positive(self):
        with pytest.raises(ValidationError):
            PoolConfig(token="FUND", reward_rate=0, start_time=0, end_time=10)


class TestLoadConfig:
    """Tests for reading pool parameters from the environment."""

    def test_load_from_env(self):
        config = load_config(ENV)

        assert config.token == ENV["TOKEN"]
        assert config.reward_rate == 10**16
        assert config.start_time == 1_700_000_000
        assert config.end_time == 1_700_010_000

    def test_custom_decimals(self):
        config = load_config({**ENV, "TOKEN_DECIMALS": "4"})
        assert config.reward_rate == 100

    def test_missing_variable(self):
        env = dict(ENV)
        del env["END_TIME"]
        with pytest.raises(ConfigurationError, match="END_TIME"):
            load_config(env)

    @pytest.mark.parametrize("name,value", [
        ("REWARD_PER_SECOND", "0"),
        ("REWARD_PER_SECOND", "lots"),
        ("START_TIME", "1700010000"),
        ("END_TIME", "soon"),
        ("REWARD_PER_SECOND", "1e80"),
        ("TOKEN_DECIMALS", "100"),
    ])
    def test_invalid_values(self, name, value):
        with pytest.raises(ConfigurationError):
            load_config({**ENV, name: value})

