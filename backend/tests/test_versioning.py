import importlib.util
import re
import sys
from pathlib import Path

from briefguard.main import app
from briefguard.version import APP_VERSION

REPO_ROOT = Path(__file__).resolve().parents[2]
SCRIPT_PATH = REPO_ROOT / "scripts" / "check_release_consistency.py"


def _load_release_module():
    spec = importlib.util.spec_from_file_location("check_release_consistency", SCRIPT_PATH)
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


def test_fastapi_uses_centralized_app_version() -> None:
    assert app.version == APP_VERSION


def test_app_version_is_semver() -> None:
    assert re.fullmatch(r"\d+\.\d+\.\d+", APP_VERSION)


def test_release_consistency_check_passes_for_repo(capsys) -> None:
    module = _load_release_module()
    assert module.main() == 0
    assert f"v{APP_VERSION}" in capsys.readouterr().out


def test_project_version_parser_reads_only_project_table() -> None:
    module = _load_release_module()
    text = '[tool.other]\nversion = "9.9.9"\n\n[project]\nname = "briefguard"\nversion = "1.2.3"\n'
    assert module._parse_project_version(text) == "1.2.3"
    assert module._parse_project_version('[tool.other]\nversion = "9.9.9"\n') is None
