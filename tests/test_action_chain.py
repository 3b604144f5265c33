"""Tests for the prioritized action chain dispatcher."""

from __future__ import annotations

from hostbridge.host.action_chain import ActionChain
from hostbridge.services.bridge_types import ActionName, Handled, NOT_HANDLED


def test_dispatch_without_handlers_is_not_handled() -> None:
    chain = ActionChain()

    assert chain.dispatch("window-open", {"url": "https://example.com"}) is NOT_HANDLED


def test_lower_priority_runs_first_and_stops_chain() -> None:
    chain = ActionChain()
    calls: list[str] = []

    def late(args):
        calls.append("late")
        return Handled("late")

    def early(args):
        calls.append("early")
        return Handled("early")

    chain.register("open-work-item", late, priority=100)
    chain.register("open-work-item", early, priority=10)

    outcome = chain.dispatch("open-work-item", {"id": 5})

    assert outcome == Handled("early")
    assert calls == ["early"]


def test_not_handled_continues_to_next_handler() -> None:
    chain = ActionChain()
    calls: list[str] = []

    def defer(args):
        calls.append("defer")
        return NOT_HANDLED

    def consume(args):
        calls.append("consume")
        return Handled(args["url"])

    chain.register("window-open", defer, priority=1)
    chain.register("window-open", consume, priority=2)

    outcome = chain.dispatch("window-open", {"url": "https://example.com"})

    assert outcome == Handled("https://example.com")
    assert calls == ["defer", "consume"]


def test_equal_priorities_run_in_registration_order() -> None:
    chain = ActionChain()
    calls: list[int] = []

    for index in range(3):
        chain.register("window-open", lambda args, index=index: calls.append(index) or NOT_HANDLED, priority=5)

    chain.dispatch("window-open")

    assert calls == [0, 1, 2]


def test_raising_handler_is_skipped() -> None:
    chain = ActionChain()

    def broken(args):
        raise RuntimeError("boom")

    chain.register("window-open", broken, priority=1)
    chain.register("window-open", lambda args: Handled(True), priority=2)

    assert chain.dispatch("window-open") == Handled(True)


def test_non_outcome_return_value_is_not_handled() -> None:
    chain = ActionChain()
    chain.register("window-open", lambda args: True)

    assert chain.dispatch("window-open") is NOT_HANDLED


def test_enum_and_string_action_names_are_interchangeable() -> None:
    chain = ActionChain()
    registration = chain.register(ActionName.WINDOW_UNLOAD, lambda args: Handled(None))

    assert registration.action == "window-unload"
    assert chain.has_handlers("window-unload")
    assert chain.dispatch(ActionName.WINDOW_UNLOAD) == Handled(None)


def test_unregister_removes_only_that_registration() -> None:
    chain = ActionChain()
    first = chain.register("window-open", lambda args: Handled("first"), priority=1)
    chain.register("window-open", lambda args: Handled("second"), priority=2)

    assert chain.unregister(first) is True
    assert chain.unregister(first) is False
    assert chain.dispatch("window-open") == Handled("second")
    assert len(chain.handlers_for("window-open")) == 1
