# tests/test_state.py
import pytest

from rcon_core.state import CoreStatus, RconState


@pytest.mark.parametrize(
    "status, connected, authenticated",
    [
        (CoreStatus.DISCONNECTED, False, False),
        (CoreStatus.CONNECTED, True, False),
        (CoreStatus.AUTHENTICATED, True, True),
        (CoreStatus.EXECUTING, True, True),
        (CoreStatus.CLOSED, False, False),
        (CoreStatus.ERROR, False, False),
    ],
)
def test_state_flags(status, connected, authenticated):
    state = RconState(status=status)
    assert state.is_connected is connected
    assert state.is_authenticated is authenticated


def test_state_defaults():
    state = RconState()
    assert state.status == CoreStatus.DISCONNECTED
    assert state.last_error == ""
    assert state.commands_executed == 0
