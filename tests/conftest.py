import httpx
import pytest

from streambridge.bus import Topic
from streambridge.config import Config
from streambridge.identity import IdentityClient


@pytest.fixture
def config():
    return Config(client_secret="test-secret", client_id="test-client")


@pytest.fixture
def oauth_topic():
    return Topic("oauth-events")


@pytest.fixture
def alert_topic():
    return Topic("alert-events")


@pytest.fixture
def make_identity(config):
    """Build an IdentityClient whose token endpoint is `handler`."""

    def _make(handler):
        return IdentityClient.from_config(config, transport=httpx.MockTransport(handler))

    return _make
