"""
JavaScript builders for in-frame evaluation.

Each builder returns a Snippet: the JS source shipped to the frame plus the
structured parameters it was built from (shells that are not a real browser,
such as test fakes, read those instead of the source).

Snippets only read the DOM or fill a field. None of them clicks, presses keys
or submits a form.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ..adapters.base import SiteAdapter

EXTRACT = "extract"
INJECT = "inject"


@dataclass(frozen=True)
class Snippet:
    kind: str
    source: str
    params: dict[str, Any] = field(default_factory=dict, compare=False)


# Probes every selector: match count plus rendered text of the last match.
# innerText is the rendered text; textContent is the raw fallback.
_EXTRACT_TEMPLATE = """
(() => {
    const selectors = %(selectors)s;
    const cap = %(cap)d;
    const probes = [];
    for (const selector of selectors) {
        let nodes;
        try {
            nodes = document.querySelectorAll(selector);
        } catch (e) {
            probes.push({ selector, count: 0, text: null, invalid: true });
            continue;
        }
        if (nodes.length > 0) {
            const last = nodes[nodes.length - 1];
            probes.push({ selector, count: nodes.length, text: last.innerText || last.textContent || '' });
        } else {
            probes.push({ selector, count: 0, text: null });
        }
    }
    const matched = probes.some(p => p.count > 0);
    const body = (!matched && document.body) ? String(document.body.innerText || '').substring(0, cap) : '';
    return { probes, body };
})()
"""

# Form controls take a value assignment (through the native setter so React-style
# bindings notice), editable regions take innerText. Then one bubbling input event.
_INJECT_TEMPLATE = """
(() => {
    const selectors = %(selectors)s;
    const prompt = %(prompt)s;
    for (const selector of selectors) {
        let el = null;
        try {
            el = document.querySelector(selector);
        } catch (e) {
            continue;
        }
        if (!el) continue;
        const formControl = el.tagName === 'TEXTAREA' || el.tagName === 'INPUT';
        if (formControl) {
            const proto = Object.getPrototypeOf(el);
            const desc = proto ? Object.getOwnPropertyDescriptor(proto, 'value') : null;
            if (desc && desc.set) {
                desc.set.call(el, prompt);
            } else {
                el.value = prompt;
            }
        } else {
            el.innerText = prompt;
        }
        el.dispatchEvent(new Event('input', { bubbles: true }));
        return { matched: selector, mode: formControl ? 'value' : 'text' };
    }
    return { matched: null };
})()
"""


def build_extract_snippet(adapter: SiteAdapter) -> Snippet:
    selectors = list(adapter.response_selectors)
    source = _EXTRACT_TEMPLATE % {
        "selectors": json.dumps(selectors),
        "cap": int(adapter.body_text_cap),
    }
    return Snippet(
        kind=EXTRACT,
        source=source.strip(),
        params={"selectors": selectors, "cap": int(adapter.body_text_cap)},
    )


def build_inject_snippet(adapter: SiteAdapter, prompt: str) -> Snippet:
    selectors = list(adapter.input_selectors)
    source = _INJECT_TEMPLATE % {
        "selectors": json.dumps(selectors),
        "prompt": json.dumps(prompt, ensure_ascii=False),
    }
    return Snippet(kind=INJECT, source=source.strip(), params={"selectors": selectors, "prompt": prompt})
