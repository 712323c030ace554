import pytest

from syllabuser.services.integrity import InputEvent, IntegrityGuard


@pytest.mark.parametrize("key", ["c", "v", "u", "s", "p", "C", "P"])
def test_blocks_ctrl_shortcuts(key):
    guard = IntegrityGuard("session-1")

    assert guard.inspect(InputEvent(type="keydown", key=key, ctrl_key=True))
    assert guard.blocked_count == 1


def test_blocks_meta_shortcuts():
    assert IntegrityGuard().inspect(InputEvent(type="keydown", key="c", meta_key=True))


def test_blocks_context_menu():
    assert IntegrityGuard().inspect(InputEvent(type="contextmenu"))


@pytest.mark.parametrize(
    "event",
    [
        InputEvent(type="keydown", key="c"),
        InputEvent(type="keydown", key="a", ctrl_key=True),
        InputEvent(type="keydown", key=None, ctrl_key=True),
        InputEvent(type="keyup", key="c", ctrl_key=True),
    ],
)
def test_allows_other_input(event):
    guard = IntegrityGuard()

    assert not guard.inspect(event)
    assert guard.blocked_count == 0


def test_released_guard_blocks_nothing():
    guard = IntegrityGuard()
    guard.release()

    assert not guard.inspect(InputEvent(type="contextmenu"))
    assert not guard.active
