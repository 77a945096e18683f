import os
import sys
import pytest

# Ensure project root is on sys.path for imports like `core.*`, `channels.*`
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


@pytest.fixture
def channels():
    """All six evidence channels, instantiated in scoring order."""
    # Importing the engine registers every channel
    import core.engine  # noqa: F401
    from core.channel_registry import ChannelRegistry
    return ChannelRegistry.instantiate_all()
