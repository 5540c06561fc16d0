from wcwidth import wcwidth


def display_width(text: str) -> int:
    """Return visual width of text accounting for wide/narrow characters."""
    width = 0
    for ch in text:
        w = wcwidth(ch)
        if w is None:
            w = 0
        width += max(0, w)
    return width


def trim_display(text: str, width: int) -> str:
    """Trim text so visible width doesn't exceed specified width."""
    acc = []
    used = 0
    for ch in text:
        w = wcwidth(ch) or 0
        if w < 0:
            w = 0
        if used + w > width:
            break
        acc.append(ch)
        used += w
    return "".join(acc)


def clip_display(text: str, width: int, ellipsis: str = "...") -> str:
    """Clip to ``width`` visible columns, appending ``ellipsis`` when cut."""
    if display_width(text) <= width:
        return text
    return trim_display(text, width) + ellipsis
