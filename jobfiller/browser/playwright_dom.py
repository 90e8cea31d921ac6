"""
Live-page implementation of the DOM collaborator, backed by Playwright.

Every read goes through one page-side script per control so a snapshot
reflects a single moment of the host page.
"""

import logging
from typing import List
from urllib.parse import urlparse

from playwright.sync_api import ElementHandle, Error as PlaywrightError, Page

from .dom import ControlSnapshot, FormControl, FormDocument

logger = logging.getLogger(__name__)

CONTROL_SELECTOR = "input, select, textarea"

SNAPSHOT_SCRIPT = """
(el, position) => {
    const style = window.getComputedStyle(el);
    const visible = style.display !== 'none' &&
        style.visibility !== 'hidden' &&
        style.opacity !== '0' &&
        el.offsetWidth > 0 &&
        el.offsetHeight > 0;

    let labelText = '';
    if (el.id) {
        const label = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
        if (label) labelText = label.textContent.trim();
    }
    if (!labelText) {
        const enclosing = el.closest('label');
        if (enclosing) {
            const copy = enclosing.cloneNode(true);
            copy.querySelectorAll('input, select, textarea').forEach(n => n.remove());
            labelText = copy.textContent.trim();
        }
    }

    const hint = el.closest('[class*="label"], [class*="field"]');

    let xpath = '';
    for (let node = el; node && node.nodeType === 1; node = node.parentNode) {
        let idx = 1;
        for (let s = node.previousSibling; s; s = s.previousSibling) {
            if (s.nodeType === 1 && s.tagName === node.tagName) idx++;
        }
        xpath = `/${node.tagName.toLowerCase()}${idx > 1 ? `[${idx}]` : ''}${xpath}`;
    }

    return {
        tag: el.tagName.toLowerCase(),
        typeAttr: (el.getAttribute('type') || '').toLowerCase(),
        domType: el.type || '',
        id: el.id || '',
        name: el.getAttribute('name') || '',
        placeholder: el.getAttribute('placeholder') || '',
        value: el.getAttribute('value') || '',
        ariaLabel: el.getAttribute('aria-label') || '',
        className: el.getAttribute('class') || '',
        labelText: labelText.replace(/\\s+/g, ' '),
        parentText: hint ? hint.textContent.trim().replace(/\\s+/g, ' ') : '',
        xpath: xpath,
        position: position,
        disabled: !!el.disabled,
        visible: visible,
        options: el.tagName === 'SELECT'
            ? Array.from(el.options).map(o => [o.value, o.text.trim()])
            : [],
    };
}
"""


class PlaywrightControl(FormControl):

    def __init__(self, page: Page, handle: ElementHandle, position: int = 0):
        self.page = page
        self.handle = handle
        self.position = position

    def snapshot(self) -> ControlSnapshot:
        data = self.handle.evaluate(SNAPSHOT_SCRIPT, self.position)
        return ControlSnapshot(
            tag=data["tag"],
            type_attr=data["typeAttr"],
            dom_type=data["domType"],
            element_id=data["id"],
            name=data["name"],
            placeholder=data["placeholder"],
            value=data["value"],
            aria_label=data["ariaLabel"],
            class_name=data["className"],
            label_text=data["labelText"],
            parent_text=data["parentText"],
            xpath=data["xpath"],
            position=data["position"],
            disabled=data["disabled"],
            visible=data["visible"],
            options=[tuple(opt) for opt in data["options"]],
        )

    def is_attached(self) -> bool:
        try:
            return bool(self.handle.evaluate("el => el.isConnected"))
        except PlaywrightError as e:
            logger.debug(f"Element handle unusable: {e}")
            return False

    def set_value(self, value: str) -> None:
        self.handle.evaluate("(el, v) => { el.value = v; }", value)

    def set_checked(self, checked: bool) -> None:
        self.handle.evaluate("(el, c) => { el.checked = c; }", checked)

    def select_option(self, option_value: str) -> None:
        self.handle.evaluate("(el, v) => { el.value = v; }", option_value)

    def radio_group(self) -> List[FormControl]:
        name = self.handle.get_attribute("name")
        if not name:
            return [self]
        escaped = name.replace("\\", "\\\\").replace('"', '\\"')
        handles = self.page.query_selector_all(f'input[type="radio"][name="{escaped}"]')
        return [PlaywrightControl(self.page, h, self.position) for h in handles]

    def dispatch_event(self, event_type: str) -> None:
        # Playwright events bubble by default
        self.handle.dispatch_event(event_type)


class PlaywrightDocument(FormDocument):
    """A live Playwright page."""

    def __init__(self, page: Page):
        self.page = page
        self.hostname = urlparse(page.url).hostname or ""

    def form_controls(self) -> List[FormControl]:
        handles = self.page.query_selector_all(CONTROL_SELECTOR)
        return [PlaywrightControl(self.page, h, i) for i, h in enumerate(handles)]
