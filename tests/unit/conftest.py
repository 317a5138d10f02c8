import os

import pytest

from routegen import Config


@pytest.fixture
def working_dir(tmp_path):
    """
    A router working directory with the certificate and allowlist
    directories already in place.
    """

    for subdir in (Config.cert_dir, Config.allowlist_dir):
        os.makedirs(tmp_path / subdir, exist_ok=True)

    return str(tmp_path)
