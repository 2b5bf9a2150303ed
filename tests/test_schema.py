# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from enum import Enum
import threading
from typing import ClassVar

import pytest

from viewbridge import DefinitionError, UploadedFile, ViewModel, action, computed, prop, watch
from viewbridge.schema import resolve_schema
from tests.helpers import Badge, Counter, Profile, Search


def test_members_are_classified() -> None:
    schema = Counter.schema()

    assert list(schema.fields) == ["count", "name"]
    assert schema.computed == ("doubled",)
    assert set(schema.actions) == {"increment", "say", "reset"}
    assert schema.watchers == ()
    assert schema.actions["reset"].roles == ("Admin",)


def test_schema_is_cached_per_type() -> None:
    assert resolve_schema(Counter) is resolve_schema(Counter)
    assert resolve_schema(Counter) is not resolve_schema(Profile)


def test_attachment_fields_are_not_serializable() -> None:
    fields = Profile.schema().fields

    assert fields["attachment"].is_attachment
    assert not fields["address"].is_attachment


def test_action_parameters_split_attachments() -> None:
    rename = Profile.schema().actions["rename"]

    assert [p.name for p in rename.parameters] == ["new_name", "upload"]
    assert [p.name for p in rename.value_parameters] == ["new_name"]
    assert rename.attachment_parameter is not None
    assert rename.attachment_parameter.kind == "file"

    collect = Profile.schema().actions["collect"]
    assert collect.attachment_parameter is not None
    assert collect.attachment_parameter.kind == "files"
    assert [p.name for p in collect.value_parameters] == ["label"]


def test_scripts_from_stacked_decorators() -> None:
    save = Profile.schema().actions["save"]

    assert save.pre_script == "this.saving = true;"
    assert save.post_script == "this.saved = true;"


def test_watchers_by_suffix_and_decorator() -> None:
    schema = Search.schema()
    watched = {(w.field, w.method_name) for w in schema.watchers}

    assert watched == {("query", "query_watch"), ("page", "load_page")}
    assert not schema.actions
    assert {"query_watch", "load_page"} <= set(schema.handlers)
    page = next(w for w in schema.watchers if w.field == "page")
    assert page.pre_script == "this.loading = true;"


def test_created_hook_is_dispatchable_only_when_overridden() -> None:
    assert Badge.schema().has_created_hook
    assert "on_created" in Badge.schema().handlers
    assert not Counter.schema().has_created_hook
    assert "on_created" not in Counter.schema().handlers


def test_props_are_collected() -> None:
    props = Badge.schema().props

    assert [(p.name, p.prop) for p in props] == [("label", "title")]


def test_prop_named_like_its_field_is_rejected() -> None:
    class Broken(ViewModel):
        title: str | None = prop("title")

    with pytest.raises(DefinitionError, match="must be different"):
        Broken.schema()


def test_prop_colliding_with_data_field_is_rejected() -> None:
    class Broken(ViewModel):
        title: str = ""
        label: str | None = prop("title")

    with pytest.raises(DefinitionError):
        Broken.schema()


def test_duplicate_action_names_are_rejected() -> None:
    class Broken(ViewModel):
        @action(name="go")
        def first(self) -> None: ...

        @action(name="go")
        def second(self) -> None: ...

    with pytest.raises(DefinitionError, match="unique"):
        Broken.schema()


def test_watcher_on_unknown_field_is_rejected() -> None:
    class Broken(ViewModel):
        value: int = 0

        @watch("missing")
        def react(self, value: int, old: int) -> None: ...

    with pytest.raises(DefinitionError, match="unknown data field"):
        Broken.schema()


def test_two_attachment_parameters_are_rejected() -> None:
    class Broken(ViewModel):
        @action()
        def upload(self, first: UploadedFile, second: UploadedFile) -> None: ...

    with pytest.raises(DefinitionError, match="more than one attachment"):
        Broken.schema()


def test_variadic_actions_are_rejected() -> None:
    class Broken(ViewModel):
        @action()
        def run(self, *values: int) -> None: ...

    with pytest.raises(DefinitionError):
        Broken.schema()


def test_reserved_names_cannot_be_fields() -> None:
    class Broken(ViewModel):
        js: str = ""

    with pytest.raises(DefinitionError, match="reserved"):
        Broken.schema()


def test_private_and_class_level_annotations_are_skipped() -> None:
    class Quiet(ViewModel):
        registry: ClassVar[dict[str, int]] = {}
        _cache: dict[str, int]
        visible: int = 3
        summary = computed("function(vm) { return vm.visible; }")

    schema = Quiet.schema()
    assert list(schema.fields) == ["visible"]
    assert schema.computed == ("summary",)


def test_subclasses_inherit_fields_and_actions() -> None:
    class Extended(Counter):
        label: str = "extra"

        @action()
        def relabel(self, label: str) -> None:
            self.label = label

    schema = Extended.schema()
    assert list(schema.fields) == ["count", "name", "label"]
    assert {"increment", "say", "reset", "relabel"} == set(schema.actions)


def test_mutable_defaults_are_per_instance() -> None:
    first, second = Profile(), Profile()
    first.notes.append("x")
    first.address.tags.append("work")

    assert second.notes == []
    assert second.address.tags == ["home"]


def test_unresolvable_action_annotations_are_rejected() -> None:
    class Mode(Enum):
        FAST = "fast"

    class Broken(ViewModel):
        @action()
        def pick(self, mode: Mode, upload: UploadedFile) -> None: ...

    with pytest.raises(DefinitionError, match="Broken.pick"):
        Broken.schema()


def test_racing_first_resolutions_share_one_schema() -> None:
    workers = 8
    barrier = threading.Barrier(workers)

    def resolve(_: int) -> object:
        barrier.wait()
        return resolve_schema(Profile)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        schemas = list(pool.map(resolve, range(workers)))

    assert all(schema is schemas[0] for schema in schemas)
    assert resolve_schema(Profile) is schemas[0]
