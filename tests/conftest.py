import warnings

warnings.filterwarnings("ignore", category=DeprecationWarning, module="fideo.*")

from tests.fixtures.recording_fixtures import *  # noqa: E402, F403
