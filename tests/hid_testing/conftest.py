"""Keep pacing and retry sleeps out of every test in hid_testing/."""
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def _patch_sleep():
    """Disable time.sleep in the modules that pace device I/O."""
    with patch("b1ctl.retry.time.sleep"), \
         patch("b1ctl.controller.time.sleep"), \
         patch("b1ctl.device.time.sleep"):
        yield
