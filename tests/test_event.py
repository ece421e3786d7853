import json

import pytest

from eventrelay.core.errors import ArgumentNotFound, InvalidArgument
from eventrelay.core.event import Event


class UserCreated(Event):
    pass


class Placed(Event):
    event_name = "orderPlaced"


class PlacedAgain(Placed):
    pass


def test_event_defaults():
    ev = Event(None)
    assert type(ev).__name__ == "Event"
    assert Event.event_name == "event"
    assert ev.get_subject() is None
    assert ev.get_arguments() == {}
    assert ev.is_propagation_stopped() is False


def test_event_with_name_argument():
    e1 = Event(None, {"name": "Event"})
    e2 = Event(None, {"name": "EventName"})
    assert e1.name == "Event"
    assert e2.name == "EventName"


def test_arguments_on_instantiation():
    ev = Event(None, {"a": "aaa", "b": "bbb"})
    assert ev.get_arguments() == {"a": "aaa", "b": "bbb"}
    assert ev.a == "aaa"


def test_set_arguments_merges():
    ev = Event()
    ev.set_arguments({"a": "aaa", "b": "bbb"})
    ev.set_arguments({"b": "BBB"})
    assert ev.get_arguments() == {"a": "aaa", "b": "BBB"}


def test_subject_is_not_an_argument():
    ev = Event({"s": "sss"}, {"a": "aaa", "b": "bbb"})
    assert ev.get_arguments() == {"a": "aaa", "b": "bbb"}
    assert ev.get_subject() == {"s": "sss"}
    assert not ev.has_argument("subject")


def test_specific_argument():
    ev = Event({"s": "sss"}, {"a": "aaa", "b": "bbb"})
    assert ev.get_arguments("a") == "aaa"


def test_unknown_argument_raises():
    ev = Event({"s": "sss"}, {"a": "aaa"})
    with pytest.raises(ArgumentNotFound) as exc:
        ev.get_arguments("c")
    assert exc.value.key == "c"
    assert isinstance(exc.value, LookupError)


def test_has_argument():
    ev = Event(None, {"a": 1})
    assert ev.has_argument("a")
    assert not ev.has_argument("c")
    assert not ev.has_argument(None)


def test_sequence_arguments_use_indices():
    ev = Event(None, ["x", "y"])
    assert ev.get_arguments() == {"0": "x", "1": "y"}
    assert ev.has_argument(0)
    assert ev.get_arguments(1) == "y"


@pytest.mark.parametrize("bad", [42, "abc", object()])
def test_invalid_argument_source(bad):
    with pytest.raises(InvalidArgument):
        Event(None, bad)


@pytest.mark.parametrize("key", ["subject", "stop_propagation", "event_name", "_propagation_stopped", "_x"])
def test_reserved_keys_rejected(key):
    ev = Event()
    with pytest.raises(InvalidArgument):
        ev.set_arguments({"a": 1, key: 2})
    # validated before anything is applied
    assert not ev.has_argument("a")
    assert ev.is_propagation_stopped() is False


def test_stop_propagation_is_sticky():
    ev = Event()
    ev.stop_propagation()
    assert ev.is_propagation_stopped()
    ev.stop_propagation()
    assert ev.is_propagation_stopped()
    assert "_propagation_stopped" not in ev.get_arguments()


def test_event_name_per_class():
    assert UserCreated.event_name == "user_created"
    assert Placed.event_name == "order_placed"
    assert PlacedAgain.event_name == "placed_again"


def test_to_dict_and_json():
    ev = UserCreated("u1", {"email": "a@b.c", "when": object()})
    d = ev.to_dict()
    assert d["event"] == "user_created"
    assert d["subject"] == "u1"
    assert d["arguments"]["email"] == "a@b.c"

    loaded = json.loads(ev.to_json())
    assert loaded["event"] == "user_created"
    assert isinstance(loaded["arguments"]["when"], str)


def test_repr_mentions_state():
    ev = UserCreated("u1")
    assert "user_created" in repr(ev)
    ev.stop_propagation()
    assert "stopped" in repr(ev)


def test_has_argument_reads_instance_state():
    ev = Event("s", {"a": 1})
    assert not ev.has_argument("_propagation_stopped")
    assert not ev.has_argument("subject")
    ev.late = 2
    assert ev.has_argument("late")
    assert ev.get_arguments("late") == 2
    with pytest.raises(ArgumentNotFound):
        ev.get_arguments("_propagation_stopped")
