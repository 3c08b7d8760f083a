import os

import pytest
import yaml

import rtb_util


@pytest.fixture(autouse=True)
def config_dir(tmp_path, monkeypatch):
    """Keep the config file and error log out of the real home directory."""
    directory = tmp_path / ".rtb-samples"
    monkeypatch.setattr(rtb_util, "CONFIG_DIR", str(directory))
    monkeypatch.setattr(rtb_util, "CONFIG_FILE", os.path.join(str(directory), "config.yaml"))
    monkeypatch.setattr(rtb_util, "ERROR_LOG_FILE", os.path.join(str(directory), "errors.log"))
    monkeypatch.delenv(rtb_util.CONFIG_ENV_VAR, raising=False)
    return directory


@pytest.fixture
def write_config(tmp_path):
    def write(section, name="rtb.yaml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump({"realtime_bidding": section}))
        return str(path)
    return write
