"""Built-in adapters for the supported chat front ends."""

from __future__ import annotations

from .base import SiteAdapter

CHATGPT = SiteAdapter(
    name="ChatGPT",
    response_selectors=(
        '[data-message-author-role="assistant"] .markdown',
        '[data-message-author-role="assistant"]',
        ".agent-turn .markdown",
    ),
    input_selectors=(
        "#prompt-textarea",
        'textarea[placeholder*="Message"]',
        "textarea",
    ),
    hosts=("chatgpt.com", "chat.openai.com"),
)

GEMINI = SiteAdapter(
    name="Gemini",
    response_selectors=(
        ".model-response-text .markdown-main-panel",
        ".model-response-text",
        ".response-content",
        'message-content[class*="model"]',
    ),
    input_selectors=(
        "rich-textarea .ql-editor",
        "rich-textarea",
        '[contenteditable="true"]',
        "textarea",
    ),
    hosts=("gemini.google.com",),
)

# Input is a ProseMirror editor; it takes innerText, not value.
CLAUDE = SiteAdapter(
    name="Claude",
    response_selectors=(
        ".font-claude-message .prose",
        '[data-is-streaming="false"] .prose',
        ".prose",
        ".message-content",
    ),
    input_selectors=(
        '.ProseMirror[contenteditable="true"]',
        '[contenteditable="true"]',
        "textarea",
    ),
    hosts=("claude.ai",),
)

GROK = SiteAdapter(
    name="Grok",
    response_selectors=(
        '[data-testid="grok-message"]',
        ".message-bubble.assistant",
        ".grok-response",
        "article .prose",
    ),
    input_selectors=(
        'textarea[placeholder*="Ask"]',
        "textarea",
        '[contenteditable="true"]',
    ),
    hosts=("grok.com",),
)

FALLBACK = SiteAdapter(
    name="Unknown",
    response_selectors=(
        ".markdown-body",
        ".prose",
        "article",
        ".message-content",
        ".response",
    ),
    input_selectors=(
        "textarea",
        '[contenteditable="true"]',
        'input[type="text"]',
    ),
)

BUILTIN_ADAPTERS: tuple[SiteAdapter, ...] = (CHATGPT, GEMINI, CLAUDE, GROK)
