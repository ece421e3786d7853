# tests/test_wire_config.py
import sys
import textwrap

import pytest

from eventrelay.core.dispatcher import Dispatcher
from eventrelay.core.errors import InvalidArgument, WiringError
from eventrelay.core.listeners import Lazy
from eventrelay.wire_config import build_from_dict, build_from_yaml

MODULE = "wiring_fixtures"

SOURCE = '''
BUILT = []


def on_created(payload, dispatcher):
    return ("created", payload)


NOT_CALLABLE = 42


class Mailer:
    def __init__(self, sender="noreply"):
        self.sender = sender
        BUILT.append(self)

    def send(self, payload, dispatcher):
        return (self.sender, payload)

    def __call__(self, payload, dispatcher):
        return ("called", self.sender)


class Audit:
    def __init__(self, prefix="audit"):
        self.prefix = prefix

    def get_subscribed_events(self):
        return {"user.*": "record"}

    def record(self, payload, dispatcher):
        return f"{self.prefix}:{payload}"


class BadAudit:
    def get_subscribed_events(self):
        return {"user.*": 1}
'''


@pytest.fixture
def fixtures_module(tmp_path, monkeypatch):
    (tmp_path / f"{MODULE}.py").write_text(SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    yield MODULE
    sys.modules.pop(MODULE, None)


def test_direct_listener(fixtures_module):
    d = build_from_dict({
        "listeners": [{"events": "user.created", "module": fixtures_module, "attr": "on_created"}],
    })
    assert d.dispatch("user.created", 1) == [("created", 1)]


def test_class_listener_is_built_lazily(fixtures_module):
    mod = __import__(fixtures_module)
    d = build_from_dict({
        "listeners": [{
            "events": ["user.created", "user.deleted"],
            "module": fixtures_module,
            "class": "Mailer",
            "method": "send",
            "args": {"sender": "ops"},
        }],
    })
    (entry,) = d.get_listeners("user.created").values()
    assert isinstance(entry, Lazy) and entry.method == "send"
    assert mod.BUILT == []

    assert d.dispatch("user.created", "u1") == [("ops", "u1")]
    assert d.dispatch("user.deleted", "u2") == [("ops", "u2")]
    assert len(mod.BUILT) == 2


def test_class_listener_defaults_to_call(fixtures_module):
    d = build_from_dict({
        "listeners": [{"events": "ping", "module": fixtures_module, "class": "Mailer"}],
    })
    assert d.dispatch("ping") == [("called", "noreply")]


def test_subscribers_section(fixtures_module):
    d = build_from_dict({
        "subscribers": [{"module": fixtures_module, "class": "Audit", "args": {"prefix": "log"}}],
    })
    assert d.has_listeners("user.*")
    assert d.dispatch("user.created", "x") == ["log:x"]


def test_registers_on_given_dispatcher(fixtures_module):
    d = Dispatcher()
    out = build_from_dict(
        {"listeners": [{"events": "a", "module": fixtures_module, "attr": "on_created"}]}, d
    )
    assert out is d
    assert d.has_listeners("a")


@pytest.mark.parametrize(
    "entry",
    [
        {"events": "a", "module": MODULE, "attr": "missing"},
        {"events": "a", "module": "no_such_module_xyz", "attr": "f"},
        {"events": "a", "module": MODULE, "attr": "NOT_CALLABLE"},
        {"events": "a", "module": MODULE},
        {"events": "a", "attr": "on_created"},
        {"events": "", "module": MODULE, "attr": "on_created"},
        {"events": [], "module": MODULE, "attr": "on_created"},
        {"events": ["a", 3], "module": MODULE, "attr": "on_created"},
        "not-a-mapping",
    ],
)
def test_bad_listener_entry(fixtures_module, entry):
    with pytest.raises(WiringError):
        build_from_dict({"listeners": [entry]})


def test_bad_root():
    with pytest.raises(WiringError):
        build_from_dict(["listeners"])


def test_broken_file_registers_nothing(fixtures_module):
    d = Dispatcher()
    data = {
        "listeners": [{"events": "a", "module": fixtures_module, "attr": "on_created"}],
        "subscribers": [{"module": fixtures_module, "class": "BadAudit"}],
    }
    with pytest.raises(InvalidArgument):
        build_from_dict(data, d)
    assert d.has_listeners() is False


def test_wiring_error_keeps_entry(fixtures_module):
    entry = {"events": "a", "module": fixtures_module, "attr": "missing"}
    with pytest.raises(WiringError) as ei:
        build_from_dict({"listeners": [entry]})
    assert ei.value.entry == entry


def test_build_from_yaml(fixtures_module, tmp_path):
    path = tmp_path / "wiring.yaml"
    path.write_text(textwrap.dedent(f"""
        listeners:
          - events: [user.created]
            module: {fixtures_module}
            attr: on_created
        subscribers:
          - module: {fixtures_module}
            class: Audit
    """), encoding="utf-8")

    d = build_from_yaml(path)
    assert d.dispatch("user.created", 7) == [("created", 7), "audit:7"]


def test_empty_yaml_gives_empty_dispatcher(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    d = build_from_yaml(path)
    assert isinstance(d, Dispatcher)
    assert d.has_listeners() is False
