"""opsboard web dashboard (Streamlit).

Operations, History and Email tabs over the same stores the CLI uses.
Still a projection: it only writes through the email tracker actions.

Run with ``opsboard ui`` or ``streamlit run opsboard/dashboard/app.py``.
"""

import re
from importlib.util import find_spec
from pathlib import Path

HAS_STREAMLIT = find_spec("streamlit") is not None

DASHBOARD_SCRIPT = Path(__file__).with_name("app.py")

# CommonMark punctuation plus ``$`` (Streamlit renders LaTeX between dollars).
_MARKDOWN_SPECIAL = re.compile(r"([\\`*_{}\[\]()#+\-.!|~<>$])")


def escape_markdown(value: object) -> str:
    """Backslash-escape *value* so Streamlit markdown shows it verbatim."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", str(value))


__all__ = ["HAS_STREAMLIT", "DASHBOARD_SCRIPT", "escape_markdown"]
