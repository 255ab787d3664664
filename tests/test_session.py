# tests/test_session.py

from __future__ import annotations

import pytest

from swift_task.core.errors import LoginError, SessionError
from swift_task.core.state import Session
from swift_task.core.users import find_user, get_user_by_id

from .fakes import FailingGateway, FakeGateway


def test_find_user_case_insensitive() -> None:
    assert find_user("  ali MEHROZ ").id == "user_1"
    assert find_user("elon musk").display_name == "Elon Musk"
    assert find_user("Nobody") is None
    assert find_user("") is None
    assert get_user_by_id("user_2").display_name == "Abdul Rehman"
    assert get_user_by_id(None) is None


def test_login_loads_store_and_remembers(settings, gateway: FakeGateway) -> None:
    s = Session(settings=settings, gateway=gateway)
    assert not s.logged_in

    user = s.login("abdul rehman")

    assert user.id == "user_2"
    assert s.logged_in
    assert s.require_store().boards == []
    assert gateway.current_user == "user_2"


def test_unknown_user_rejected(settings, gateway: FakeGateway) -> None:
    s = Session(settings=settings, gateway=gateway)
    with pytest.raises(LoginError):
        s.login("Mallory")
    assert not s.logged_in
    assert gateway.current_user is None


def test_require_store_without_login(settings, gateway: FakeGateway) -> None:
    s = Session(settings=settings, gateway=gateway)
    with pytest.raises(SessionError):
        s.require_store()


def test_logout_forgets_user_and_relogin_reloads(session: Session, gateway: FakeGateway) -> None:
    session.require_store().add_board("Work")

    session.logout()

    assert not session.logged_in
    assert session.user is None
    assert gateway.current_user is None

    session.login("Ali Mehroz")
    assert [b.name for b in session.require_store().boards] == ["Work"]


def test_switching_user_swaps_trees(session: Session) -> None:
    session.require_store().add_board("Ali's")
    session.login("Elon Musk")
    assert session.user.id == "user_3"
    assert session.require_store().boards == []

    session.login("Ali Mehroz")
    assert [b.name for b in session.require_store().boards] == ["Ali's"]


def test_close_keeps_user_remembered(session: Session, gateway: FakeGateway) -> None:
    before = gateway.saves
    session.close()
    assert gateway.saves == before + 1
    assert gateway.current_user == "user_1"
    assert session.logged_in


def test_save_failure_notifies(settings) -> None:
    messages: list[str] = []
    s = Session(settings=settings, gateway=FailingGateway(), notify=messages.append)
    s.login("Ali Mehroz")

    board = s.require_store().add_board("Work")

    assert s.require_store().find_board(board.id) is board
    assert messages == ["Error saving data: disk full"]


def test_broken_notifier_does_not_break_session(settings) -> None:
    def boom(text: str) -> None:
        raise RuntimeError(text)

    s = Session(settings=settings, gateway=FailingGateway(), notify=boom)
    s.login("Ali Mehroz")
    s.require_store().add_board("Work")
    assert len(s.require_store().boards) == 1
