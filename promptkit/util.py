import re
import structlog

log = structlog.get_logger(__name__)

# pybars escapes quotes, equals and backticks along with <, > and &. prompt
# text wants the former back, so only those are reverted.
_UNESCAPE_MAP = {
    "&quot;": '"',
    "&#x27;": "'",
    "&#39;": "'",
    "&#x3D;": "=",
    "&#x60;": "`",
}
_UNESCAPE_REG = re.compile("|".join(map(re.escape, _UNESCAPE_MAP)))


def unescape_html(text: str) -> str:
    # reverts the entities in _UNESCAPE_MAP; &amp;, &lt; and &gt; stay escaped.
    return _UNESCAPE_REG.sub(lambda match: _UNESCAPE_MAP[match.group(0)], text)


def parse_key_value_pairs(pairs) -> dict:
    # turns ("key=value", ...) into a dict; entries without '=' are skipped.
    parsed = {}
    for pair in pairs:
        if "=" not in pair:
            log.warning("ignoring_malformed_key_value_pair", pair=pair)
            continue
        key, value = pair.split("=", 1)
        parsed[key.strip()] = value
    return parsed
