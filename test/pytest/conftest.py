import pytest

from print_gateway.config import AppConfig
from print_gateway.utils.ipp_client import IppResponse, TransportError

CUPS_URL = "http://cups.local:631"


class FakeTransport:
    """Scripted IPP transport: (uri, operation) -> response, exception or callable"""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    async def execute(self, target_uri, operation, message):
        self.calls.append((target_uri, operation, message))
        outcome = self.routes.get((target_uri, operation))
        if outcome is None:
            raise TransportError(f"connection refused: {target_uri}")
        if callable(outcome):
            outcome = outcome(message)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def operations(self):
        return [(uri, op) for uri, op, _ in self.calls]


def ok(**groups):
    """Builds a successful-ok response from keyword groups"""
    attributes = {key.replace("_", "-"): value for key, value in groups.items()}
    return IppResponse("successful-ok", attributes)


@pytest.fixture
def app_config(tmp_path):
    environ = {
        "CUPS_BASE_URL": CUPS_URL,
        "USERS": "alice:secret,bob:hunter2",
        "CUPS_CANDIDATE_PRINTERS": "office1,office2,lobby",
    }
    return AppConfig(str(tmp_path / "data"), environ=environ)
