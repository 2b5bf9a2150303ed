# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

from __future__ import annotations

import pytest

from viewbridge import (
    AuthorizationError,
    CoercionError,
    Identity,
    PayloadError,
    UpdateRequest,
    UploadedFile,
    ViewBridgeConfig,
    ViewModel,
    action,
    prop,
    run_update,
)
from tests.helpers import Counter, Profile, Search


def test_increment_round_trip() -> None:
    change = run_update(Counter, {"snapshot": {"count": 1, "name": None}, "method": "increment"})

    assert change.update == {"count": 2, "name": "x"}
    assert change.js == ""


def test_unchanged_fields_are_not_echoed() -> None:
    change = run_update(Counter, {"snapshot": {"count": 5, "name": "keep"}, "method": "increment", "parameters": [1]})

    assert change.update == {"count": 6}


def test_script_is_returned() -> None:
    change = run_update(Counter, {"snapshot": {"count": 0, "name": None}, "method": "say", "parameters": ["hi"]})

    assert change.update == {}
    assert change.js == 'alert("hi");'


def test_non_empty_defaults_missing_from_snapshot_are_sent() -> None:
    change = run_update(Counter, {"snapshot": {}, "method": "say", "parameters": ["hi"]})

    assert change.update == {"count": 0}


def test_fields_missing_from_snapshot_keep_defaults() -> None:
    # ``notes`` was never sent and stays empty, so it is not reported.
    change = run_update(Profile, {"snapshot": {"color": "r"}, "method": "set_color", "parameters": ["GREEN"]})

    assert change.update == {
        "color": "g",
        "address": {"street": "Main", "city": "Springfield", "tags": ["home"]},
    }


def test_json_text_fields_are_decoded() -> None:
    request = UpdateRequest.parse(
        {"snapshot": '{"count": 1, "name": null}', "method": "increment", "parameters": "[3]"}
    )

    assert request.snapshot == {"count": 1, "name": None}
    assert request.parameters == [3]
    assert run_update(Counter, request).update == {"count": 4}


@pytest.mark.parametrize(
    "payload",
    [
        {"snapshot": {}},
        {"snapshot": {}, "method": ""},
        {"snapshot": "{not json", "method": "increment"},
        {"snapshot": [], "method": "increment"},
        {"snapshot": {}, "method": "increment", "surprise": 1},
    ],
)
def test_malformed_payloads(payload: dict[str, object]) -> None:
    with pytest.raises(PayloadError):
        run_update(Counter, payload)


def test_authorization_failure_produces_no_change() -> None:
    with pytest.raises(AuthorizationError):
        run_update(Counter, {"snapshot": {"count": 3}, "method": "reset"})

    change = run_update(
        Counter, {"snapshot": {"count": 3}, "method": "reset"}, principal=Identity.of("root", "Admin")
    )
    assert change.update == {"count": 0}


def test_coercion_failure_propagates() -> None:
    with pytest.raises(CoercionError):
        run_update(Counter, {"snapshot": {}, "method": "increment", "parameters": ["many"]})


def test_attachments_reach_the_action() -> None:
    upload = UploadedFile("avatar.png", "image/png", b"\x89PNG")
    change = run_update(
        Profile,
        {"snapshot": {"upload_name": None}, "method": "rename", "parameters": ["Bob"], "files": [upload]},
    )

    assert change.update["upload_name"] == "Bob:avatar.png"


def test_upload_limit() -> None:
    upload = UploadedFile("big.bin", None, b"x" * 10)
    config = ViewBridgeConfig(max_upload_bytes=5)

    with pytest.raises(PayloadError, match="exceed"):
        run_update(Profile, {"method": "rename", "parameters": ["Bob"], "files": [upload]}, config=config)


def test_watch_handler_round_trip() -> None:
    change = run_update(
        Search,
        {"snapshot": {"query": "abc", "results": [], "page": 1}, "method": "query_watch", "parameters": ["abc", ""]},
    )

    assert change.update == {"results": ["ABC"]}


def test_lifecycle_hooks_run_in_order() -> None:
    events: list[str] = []

    class Tracked(ViewModel):
        value: int = 0

        def on_init(self) -> None:
            events.append("init")

        def close(self) -> None:
            events.append("close")

        @action()
        def bump(self) -> None:
            events.append(f"bump {self.value}")
            self.value += 1

    change = run_update(Tracked, {"snapshot": {"value": 7}, "method": "bump"})

    assert events == ["init", "bump 7", "close"]
    assert change.update == {"value": 8}


def test_close_runs_when_action_fails() -> None:
    closed: list[bool] = []

    class Failing(ViewModel):
        def close(self) -> None:
            closed.append(True)

        @action()
        def boom(self) -> None:
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        run_update(Failing, {"snapshot": {}, "method": "boom"})
    assert closed == [True]


def test_identity_is_visible_to_the_instance() -> None:
    seen: list[object] = []

    class WhoAmI(ViewModel):
        @action()
        def check(self) -> None:
            seen.append(self.identity)

    identity = Identity.of("carol")
    run_update(WhoAmI, {"method": "check"}, principal=identity)

    assert seen == [identity]


def test_prop_fed_fields_are_part_of_the_update() -> None:
    class Titled(ViewModel):
        heading: str | None = prop("title", default=None)

        @action()
        def shout(self) -> None:
            self.heading = (self.heading or "").upper()

    change = run_update(Titled, {"snapshot": {"heading": "hello"}, "method": "shout"})

    assert change.update == {"heading": "HELLO"}
