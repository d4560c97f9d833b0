"""JSON encoding for values embedded in the compiled script.

Output is pretty-printed with four-space indentation, keeps slashes
unescaped, and escapes everything outside ASCII (including U+2028 and
U+2029), so every encoded value is also a valid JavaScript literal.
"""

import json
from typing import Any


def js_literal(value: Any) -> str:
    """Encode *value* as a JavaScript literal."""
    return json.dumps(value, indent=4, ensure_ascii=True)


def js_comment_text(text: str) -> str:
    """Make *text* safe to place inside a ``/* ... */`` comment."""
    return text.replace("*/", "* /")
