"""Version metadata exposed by the package."""

import pytest

import adaptive_optimizer
from _version import __version__, __version_info__, get_full_version, get_version_dict

pytestmark = pytest.mark.fast


def test_package_reexports_version():
    assert adaptive_optimizer.__version__ == __version__


def test_version_info_matches_string():
    assert ".".join(str(part) for part in __version_info__) == __version__


def test_full_version_without_sha():
    assert get_full_version().startswith(__version__)


def test_version_dict_keys():
    assert set(get_version_dict()) == {
        "version", "version_info", "release_date", "release_name", "git_sha",
    }
