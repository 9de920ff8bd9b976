import pytest
from PySide6.QtCore import QCoreApplication


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """Signals and timers want an application instance, not a running loop."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
