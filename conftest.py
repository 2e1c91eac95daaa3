import sys
from pathlib import Path
import os

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("OBS_CONTROL_BACKEND", "memory")

from broadcast_engines.connectors.obs import impl as obs_impl
from broadcast_engines.scene_generation import service as generation_service
from broadcast_engines.scene_manager import state as scene_state


@pytest.fixture(autouse=True)
def _reset_singletons():
    yield
    obs_impl.set_control_client(None)
    generation_service._default_service = None
    generation_service._default_event_log = None
    scene_state._default_state = None
