import pytest

from trainping.config import CampaignConfig

TARGET = "192.0.2.1"


@pytest.fixture
def make_config(tmp_path):
    """Campaign settings for a resolved target, export kept under tmp_path."""
    def _make(**overrides):
        params = dict(hostname="example.net", address=TARGET,
                      export_path=str(tmp_path / "Sequence_RTTs.txt"))
        params.update(overrides)
        return CampaignConfig(**params)
    return _make
