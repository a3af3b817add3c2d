import pytest

from relaybot.config.model import NetworkConfig, RelayConfig
from relaybot.logging_config import error_aggregator
from tests.fixtures.fakes import RecordingSleep
from tests.fixtures.sample_configs import SINGLE_NETWORK_CONFIG


@pytest.fixture
def relay_config() -> RelayConfig:
    return RelayConfig.from_dict(SINGLE_NETWORK_CONFIG)


@pytest.fixture
def network_config(relay_config: RelayConfig) -> NetworkConfig:
    return relay_config.networks["testnet"]


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(autouse=True)
def _clear_error_aggregator():
    yield
    error_aggregator.clear()
