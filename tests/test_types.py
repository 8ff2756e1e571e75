import io

from tenv.types import (
    Displayer,
    InertDisplayer,
    LogLevel,
    PredicateInfo,
    Settings,
    display_detection_info,
    level_warn_or_debug,
)


def test_display_detection_info_returns_version_and_displays():
    out = io.StringIO()
    result = display_detection_info(Displayer(stream=out), "1.6.0", "src")
    assert result == "1.6.0"
    assert out.getvalue() == "Resolved version from src : 1.6.0\n"


def test_buffered_flush_normal_writes_pending():
    out = io.StringIO()
    d = Displayer(stream=out, buffered=True)
    d.display("one")
    assert out.getvalue() == ""
    d.flush(False)
    assert out.getvalue() == "one\n"
    d.display("two")
    assert out.getvalue() == "one\ntwo\n"


def test_buffered_flush_proxy_drops_pending():
    out = io.StringIO()
    d = Displayer(stream=out, buffered=True)
    d.display("hidden")
    d.flush(True)
    assert out.getvalue() == ""


def test_debug_log_hidden_unless_debug():
    out = io.StringIO()
    Displayer(stream=out).log(LogLevel.DEBUG, "x")
    assert out.getvalue() == ""
    d = Displayer(stream=out, debug=True)
    d.log(LogLevel.DEBUG, "x")
    assert "x" in out.getvalue()
    assert d.is_debug() is True


def test_inert_displayer_is_not_debug():
    assert InertDisplayer().is_debug() is False


def test_settings_getenv():
    s = Settings(env={"A": "b"})
    assert s.getenv("A") == "b"
    assert s.getenv("MISSING") == ""


def test_level_warn_or_debug():
    assert level_warn_or_debug(True) is LogLevel.DEBUG
    assert level_warn_or_debug(False) is LogLevel.WARN


def test_predicate_info_default_order():
    info = PredicateInfo(predicate=lambda v: v == "a")
    assert info.reverse_order is True
    assert info.predicate("a") is True