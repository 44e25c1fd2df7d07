"""JavaScript evaluated inside the page by the Playwright surface."""

BRIDGE_NAME = "__autofillBridge"
REF_ATTRIBUTE = "data-autofill-ref"

# Snapshots every element matching ``selector`` and tags it with a ref
# attribute so it can be addressed again from Python.
SNAPSHOT_ELEMENTS_JS = """
({ selector, startRef }) => {
    const isVisible = (el) => {
        const style = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        if (style.display === 'none') return false;
        if (style.visibility === 'hidden') return false;
        if (rect.width <= 0 || rect.height <= 0) return false;
        return true;
    };

    const elements = [];
    let ref = startRef;
    for (const el of document.querySelectorAll(selector)) {
        ref += 1;
        el.setAttribute('data-autofill-ref', String(ref));
        elements.push({
            ref,
            tag: el.tagName.toLowerCase(),
            element_id: el.id || '',
            name: el.getAttribute('name') || '',
            placeholder: el.getAttribute('placeholder') || '',
            aria_label: el.getAttribute('aria-label') || '',
            input_type: (el.getAttribute('type') || '').toLowerCase(),
            value: typeof el.value === 'string' ? el.value : '',
            visible: isVisible(el),
            disabled: !!el.disabled || el.getAttribute('aria-disabled') === 'true',
            text: (el.innerText || '').trim().slice(0, 200),
        });
    }
    return { elements, lastRef: ref };
}
"""

FOCUS_JS = "(el) => { el.focus(); el.click(); }"

BLUR_JS = "(el) => el.blur()"

# Native setter, so React/Vue value trackers register the change.
SET_VALUE_JS = """
(el, value) => {
    try {
        const proto = el.tagName === 'TEXTAREA'
            ? window.HTMLTextAreaElement.prototype
            : window.HTMLInputElement.prototype;
        Object.getOwnPropertyDescriptor(proto, 'value').set.call(el, value);
    } catch (e) {
        el.value = value;
    }
}
"""

_BUILD_TRANSFER_JS = """
    const buildTransfer = (files) => {
        const transfer = new DataTransfer();
        for (const f of files) {
            const raw = window.atob(f.data);
            const bytes = new Uint8Array(raw.length);
            for (let i = 0; i < raw.length; ++i) bytes[i] = raw.charCodeAt(i);
            transfer.items.add(new File([bytes], f.name, { type: f.type }));
        }
        return transfer;
    };
"""

DISPATCH_EVENT_JS = """
(el, { type, bubbles, cancelable, files }) => {
""" + _BUILD_TRANSFER_JS + """
    let event;
    if (files) {
        event = new DragEvent(type, { bubbles, cancelable, dataTransfer: buildTransfer(files) });
    } else if (type === 'keydown' || type === 'keyup') {
        event = new KeyboardEvent(type, { bubbles, cancelable });
    } else {
        event = new Event(type, { bubbles, cancelable });
    }
    el.dispatchEvent(event);
}
"""

ASSIGN_FILES_JS = """
(el, files) => {
""" + _BUILD_TRANSFER_JS + """
    const transfer = buildTransfer(files);
    Object.defineProperty(el, 'files', { value: transfer.files, configurable: true });
}
"""

SCRAPE_NOTIFICATIONS_JS = """
() => {
    const badge = document.querySelector('.badge-count, .notification-bubble, [aria-label*="notif"]');
    const count = badge ? parseInt(badge.innerText, 10) : 0;
    if (window.%s) {
        window.%s(JSON.stringify({ type: 'NOTIFICATION_UPDATE', count: count || 0 }));
    }
}
""" % (BRIDGE_NAME, BRIDGE_NAME)
