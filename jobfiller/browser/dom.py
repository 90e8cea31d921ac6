"""
DOM collaborator interfaces.

The matching and coercion logic only talks to FormDocument and
FormControl. Two implementations exist:
- PlaywrightDocument: a live browser page
- HtmlDocument: a static HTML snapshot (dry runs, tests)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Tuple

TEXT_LIKE = "text"
CHECKBOX = "checkbox"
RADIO = "radio"
SELECT = "select"


@dataclass
class ControlSnapshot:
    """Attributes of one form control, read at discovery time."""

    tag: str = "input"          # input, select, textarea
    type_attr: str = ""         # raw type attribute ("" if absent)
    dom_type: str = "text"      # element.type as the browser reports it
    element_id: str = ""
    name: str = ""
    placeholder: str = ""
    value: str = ""             # value attribute (radio/checkbox/option matching)
    aria_label: str = ""
    class_name: str = ""
    label_text: str = ""        # <label for=id>, else enclosing <label>
    parent_text: str = ""       # nearest [class*=label|field] ancestor text
    xpath: str = ""
    position: int = 0           # ordinal among all form controls
    disabled: bool = False
    visible: bool = True
    options: List[Tuple[str, str]] = field(default_factory=list)  # (value, text)

    @property
    def kind(self) -> str:
        if self.tag == "select":
            return SELECT
        if self.tag == "input" and self.dom_type in (CHECKBOX, RADIO):
            return self.dom_type
        return TEXT_LIKE


class FormControl(ABC):
    """Write side of one control (the form control sink)."""

    @abstractmethod
    def snapshot(self) -> ControlSnapshot:
        ...

    @abstractmethod
    def is_attached(self) -> bool:
        """Still part of the document (host pages re-render)."""

    @abstractmethod
    def set_value(self, value: str) -> None:
        ...

    @abstractmethod
    def set_checked(self, checked: bool) -> None:
        ...

    @abstractmethod
    def select_option(self, option_value: str) -> None:
        ...

    @abstractmethod
    def radio_group(self) -> List["FormControl"]:
        """All radios sharing this control's name, including itself."""

    @abstractmethod
    def dispatch_event(self, event_type: str) -> None:
        """Fire a bubbling DOM event ("input", "change")."""


class FormDocument(ABC):
    """A page that holds form controls."""

    hostname: str = ""

    @abstractmethod
    def form_controls(self) -> List[FormControl]:
        """input, select and textarea elements in document order."""
