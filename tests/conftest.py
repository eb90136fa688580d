import json
import pathlib
import sys
from pathlib import Path

import pytest
import yaml

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from jira_chat_notifier.config import NotifierConfig

RESOURCES_DIR = Path(__file__).parent / "resources"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's environment out of the configuration tests."""
    monkeypatch.delenv("URL_SECRET", raising=False)
    monkeypatch.delenv("NOTIFIER_CONFIG", raising=False)


def load_resource(name: str) -> dict:
    with open(RESOURCES_DIR / name, "r", encoding="utf-8") as f:
        return json.load(f)


def write_yaml(path: Path, content: dict) -> Path:
    path.write_text(yaml.dump(content))
    return path


@pytest.fixture
def config_data():
    return {
        "general": {
            "secret": "s3cret",
            "ticket_url": "http://t/",
            "listen": ":8081",
        },
        "projects": {
            "abc": [{"webhook": "http://x/hook"}],
            "bts": [
                {"webhook": "http://chat/all"},
                {"webhook": "http://chat/created-only", "on_events": "created"},
                {"webhook": "http://chat/override", "ticket_url": "http://other/browse/"},
            ],
        },
    }


@pytest.fixture
def notifier_config(config_data):
    return NotifierConfig.from_dict(config_data)


@pytest.fixture
def config_file(tmp_path, config_data):
    return write_yaml(tmp_path / "config.yml", config_data)
