# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

from __future__ import annotations

from viewbridge.script import ScriptBuilder, js_literal, js_string


def test_fragments_concatenate_in_append_order() -> None:
    js = ScriptBuilder()
    js.code("a();").code("b();").code("a();")

    assert str(js) == "a();b();a();"
    assert len(js) == len("a();b();a();")


def test_flush_returns_text_and_clears() -> None:
    js = ScriptBuilder().code("x = 1;")

    assert js.flush() == "x = 1;"
    assert len(js) == 0
    assert js.flush() == ""


def test_code_formats_positional_arguments() -> None:
    js = ScriptBuilder().code("setTimeout(go, {0});", 250)

    assert str(js) == "setTimeout(go, 250);"


def test_helpers_encode_their_arguments() -> None:
    js = ScriptBuilder()
    js.alert("it's \"done\"").console_log("hi").navigate_to("/next").redirect_to("https://example.com/?a=1")

    text = js.flush()
    assert 'alert("it\'s \\"done\\"");' in text
    assert 'console.log("hi");' in text
    assert 'navToPage("/next");' in text
    assert 'location.href = "https://example.com/?a=1";' in text


def test_focus_suppresses_client_errors() -> None:
    text = ScriptBuilder().focus("email").flush()

    assert text.startswith("try {")
    assert "catch (e) { }" in text
    assert '".vue-page-active #email"' in text


def test_js_literal_escapes_closing_script_tags() -> None:
    assert js_literal({"html": "</script>"}) == '{"html": "<\\/script>"}'
    assert js_string(42) == '"42"'
