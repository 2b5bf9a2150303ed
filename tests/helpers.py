# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Sample view models shared across tests."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from viewbridge import UploadedFile, ViewModel, action, computed, field, post_script, pre_script, prop, roles, watch


class Color(Enum):
    RED = "r"
    GREEN = "g"


class Address(BaseModel):
    street: str = ""
    city: str = ""
    tags: list[str] = []


class Counter(ViewModel):
    count: int = 0
    name: str | None = None
    doubled = computed("function(vm) { return vm.count * 2; }")

    @action()
    def increment(self, step: int = 1) -> None:
        self.count += step
        if self.count == 2:
            self.name = "x"

    @action()
    def say(self, text: str) -> None:
        self.js.alert(text)

    @action()
    @roles("Admin")
    def reset(self) -> None:
        self.count = 0


class Profile(ViewModel):
    address: Address = field(default_factory=lambda: Address(street="Main", city="Springfield", tags=["home"]))
    color: Color = Color.RED
    notes: list[str] = field(default_factory=list)
    upload_name: str | None = None
    attachment: UploadedFile | None = None

    @action()
    def set_color(self, color: Color) -> None:
        self.color = color

    @action()
    def move(self, address: Address) -> None:
        self.address = address

    @action()
    def rename(self, new_name: str, upload: UploadedFile) -> None:
        self.upload_name = f"{new_name}:{upload.filename}"

    @action()
    def collect(self, files: list[UploadedFile], label: str = "batch") -> None:
        self.notes = [label, *(f.filename for f in files)]

    @action(post_script="this.saved = true;")
    @pre_script("this.saving = true;")
    def save(self, flag: bool, amount: float) -> None:
        self.notes = [str(flag), str(amount)]


class Search(ViewModel):
    query: str = ""
    results: list[str] = field(default_factory=list)
    page: int = 1

    def query_watch(self, value: str, old: str) -> None:
        self.results = [value.upper()]

    @watch("page")
    @pre_script("this.loading = true;")
    def load_page(self, value: int, old: int) -> None:
        self.results = [f"page {value}"]


class Badge(ViewModel):
    label: str | None = prop("title", default=None)
    clicks: int = 0
    created_calls: int = 0

    def on_created(self) -> None:
        self.created_calls += 1
        self.js.console_log("badge created")

    @action()
    def click(self) -> None:
        self.clicks += 1


class Plain(ViewModel):
    value: int = 0

    @action()
    def bump(self) -> None:
        self.value += 1


__all__ = ["Address", "Badge", "Color", "Counter", "Plain", "Profile", "Search"]
