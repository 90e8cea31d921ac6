"""
Static HTML implementation of the DOM collaborator.

Parses an HTML snapshot with BeautifulSoup. Writes update the parsed
tree and every synthesized event is recorded in HtmlDocument.events,
so a dry-run fill can be inspected without a browser.

Visibility is read from inline styles and the hidden attribute only;
there is no layout engine.
"""

from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .dom import ControlSnapshot, FormControl, FormDocument

CONTROL_TAGS = ["input", "select", "textarea"]


def parse_style(style: str) -> Dict[str, str]:
    rules = {}
    for declaration in (style or "").split(";"):
        if ":" in declaration:
            prop, value = declaration.split(":", 1)
            rules[prop.strip().lower()] = value.strip().lower()
    return rules


def _class_string(el: Tag) -> str:
    classes = el.get("class") or []
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


def _element_xpath(el: Tag) -> str:
    xpath = ""
    node = el
    while isinstance(node, Tag) and not isinstance(node, BeautifulSoup):
        idx = 1
        for sibling in node.previous_siblings:
            if isinstance(sibling, Tag) and sibling.name == node.name:
                idx += 1
        suffix = f"[{idx}]" if idx > 1 else ""
        xpath = f"/{node.name}{suffix}{xpath}"
        node = node.parent
    return xpath


def _label_text(label: Tag) -> str:
    """Label text without the text of nested controls."""
    parts = []
    for text in label.find_all(string=True):
        if any(parent.name in ("select", "option", "textarea") for parent in text.parents if parent is not label):
            continue
        parts.append(str(text))
    return " ".join("".join(parts).split())


class HtmlControl(FormControl):

    def __init__(self, document: "HtmlDocument", element: Tag, position: int = 0):
        self.document = document
        self.element = element
        self.position = position

    @property
    def key(self) -> str:
        el = self.element
        return el.get("id") or el.get("name") or _element_xpath(el)

    # -- read --

    def _dom_type(self) -> str:
        el = self.element
        if el.name == "select":
            return "select-multiple" if el.has_attr("multiple") else "select-one"
        if el.name == "textarea":
            return "textarea"
        return (el.get("type") or "text").lower()

    def _is_visible(self) -> bool:
        el = self.element
        own = parse_style(el.get("style", ""))
        if own.get("opacity") == "0":
            return False
        if own.get("width") in ("0", "0px") or own.get("height") in ("0", "0px"):
            return False
        node = el
        while isinstance(node, Tag) and not isinstance(node, BeautifulSoup):
            style = parse_style(node.get("style", ""))
            if node.has_attr("hidden") or style.get("display") == "none":
                return False
            if style.get("visibility") == "hidden":
                return False
            node = node.parent
        return True

    def _find_label_text(self) -> str:
        el = self.element
        el_id = el.get("id")
        if el_id:
            label = self.document.soup.find("label", attrs={"for": el_id})
            if label:
                text = _label_text(label)
                if text:
                    return text
        enclosing = el.find_parent("label")
        if enclosing:
            return _label_text(enclosing)
        return ""

    def _find_parent_text(self) -> str:
        node = self.element
        while isinstance(node, Tag) and not isinstance(node, BeautifulSoup):
            classes = _class_string(node)
            if "label" in classes or "field" in classes:
                return " ".join(node.get_text(" ").split())
            node = node.parent
        return ""

    def _options(self) -> List[Tuple[str, str]]:
        options = []
        for opt in self.element.find_all("option"):
            text = opt.get_text(strip=True)
            options.append((opt.get("value", text), text))
        return options

    def snapshot(self) -> ControlSnapshot:
        el = self.element
        return ControlSnapshot(
            tag=el.name,
            type_attr=(el.get("type") or "").lower(),
            dom_type=self._dom_type(),
            element_id=el.get("id") or "",
            name=el.get("name") or "",
            placeholder=el.get("placeholder") or "",
            value=el.get("value") or "",
            aria_label=el.get("aria-label") or "",
            class_name=_class_string(el),
            label_text=self._find_label_text(),
            parent_text=self._find_parent_text(),
            xpath=_element_xpath(el) if self.is_attached() else "",
            position=self.position,
            disabled=el.has_attr("disabled"),
            visible=self._is_visible(),
            options=self._options() if el.name == "select" else [],
        )

    def is_attached(self) -> bool:
        return any(parent is self.document.soup for parent in self.element.parents)

    @property
    def value(self) -> str:
        el = self.element
        if el.name == "textarea":
            return el.get_text()
        if el.name == "select":
            for opt_value, _ in self.selected_options():
                return opt_value
            return ""
        return el.get("value", "")

    @property
    def checked(self) -> bool:
        return self.element.has_attr("checked")

    def selected_options(self) -> List[Tuple[str, str]]:
        selected = []
        for opt in self.element.find_all("option"):
            if opt.has_attr("selected"):
                text = opt.get_text(strip=True)
                selected.append((opt.get("value", text), text))
        return selected

    # -- write --

    def set_value(self, value: str) -> None:
        if self.element.name == "textarea":
            self.element.string = value
        else:
            self.element["value"] = value

    def set_checked(self, checked: bool) -> None:
        if checked and self.element.get("type", "").lower() == "radio":
            for other in self.radio_group():
                if other.element is not self.element and other.element.has_attr("checked"):
                    del other.element["checked"]
        if checked:
            self.element["checked"] = "checked"
        elif self.element.has_attr("checked"):
            del self.element["checked"]

    def select_option(self, option_value: str) -> None:
        for opt in self.element.find_all("option"):
            text = opt.get_text(strip=True)
            if opt.get("value", text) == option_value:
                opt["selected"] = "selected"
            elif opt.has_attr("selected"):
                del opt["selected"]

    def radio_group(self) -> List[FormControl]:
        name = self.element.get("name")
        if not name:
            return [self]
        radios = [
            el for el in self.document.soup.find_all("input", attrs={"name": name})
            if (el.get("type") or "").lower() == "radio"
        ]
        return [HtmlControl(self.document, el, self.document.position_of(el)) for el in radios]

    def dispatch_event(self, event_type: str) -> None:
        self.document.events.append((self.key, event_type))


class HtmlDocument(FormDocument):
    """
    A parsed HTML page.

    Args:
        html: page markup
        hostname: host the page was captured from (selects domain mappings)
    """

    def __init__(self, html: str, hostname: str = ""):
        self.soup = BeautifulSoup(html or "", "html.parser")
        self.hostname = hostname
        self.events: List[Tuple[str, str]] = []

    def _elements(self) -> List[Tag]:
        return self.soup.find_all(CONTROL_TAGS)

    def position_of(self, element: Tag) -> int:
        for i, el in enumerate(self._elements()):
            if el is element:
                return i
        return 0

    def form_controls(self) -> List[FormControl]:
        return [HtmlControl(self, el, i) for i, el in enumerate(self._elements())]

    def control(self, css_selector: str) -> Optional[HtmlControl]:
        """Wrap the first element matching a CSS selector."""
        el = self.soup.select_one(css_selector)
        if el is None:
            return None
        return HtmlControl(self, el, self.position_of(el))

    def to_html(self) -> str:
        return str(self.soup)
