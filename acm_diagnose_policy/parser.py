import re
from dataclasses import dataclass

# Compliance messages are often "NonCompliant; violation - <detail>"
VIOLATION_PREFIX = "violation - "
NAMESPACE_MARKER = "in namespace "

_WHITESPACE = re.compile(r"[ \t]")
_NAMESPACE_END = re.compile(r"[ \t;,]")


@dataclass(frozen=True)
class ParsedResource:
    kind: str = ""
    name: str = ""
    namespace: str = ""


def strip_violation_prefix(message: str) -> str:
    idx = message.find(VIOLATION_PREFIX)
    if idx >= 0:
        return message[idx + len(VIOLATION_PREFIX):]
    return message


def _first_token(text: str) -> str:
    """
    Text up to the first space or tab; the whole text if there is none.
    """
    m = _WHITESPACE.search(text)
    if m is None:
        return text
    return text[: m.start()]


def _parse_kind_first(detail: str) -> tuple[str, str]:
    """
    "kind [name] description" or bare "kind description".
    """
    open_bracket = detail.find("[")
    if open_bracket > 0:
        kind = detail[:open_bracket].strip()
        close_bracket = detail.find("]", open_bracket)
        name = detail[open_bracket + 1 : close_bracket] if close_bracket > 0 else ""
        return kind, name

    m = _WHITESPACE.search(detail)
    if m is not None and m.start() > 0:
        return detail[: m.start()], ""
    return "", ""


def _parse_bracketed_kind(detail: str) -> tuple[str, str]:
    """
    "[kind] name description".
    """
    close_bracket = detail.find("]")
    if close_bracket <= 1:
        return "", ""
    kind = detail[1:close_bracket]
    rest = detail[close_bracket + 1 :].strip()
    return kind, _first_token(rest)


def _parse_namespace(detail: str) -> str:
    idx = detail.find(NAMESPACE_MARKER)
    if idx < 0:
        return ""
    after = detail[idx + len(NAMESPACE_MARKER) :]
    m = _NAMESPACE_END.search(after)
    if m is not None and m.start() > 0:
        return after[: m.start()]
    if m is None:
        return after
    return ""


def parse_violation_resource(message: str) -> ParsedResource:
    """
    Extract (kind, name, namespace) from an ACM violation message.

    Two grammars are recognized:
      - "kind [name] description", e.g.
        "operators [web-terminal.openshift-web-terminal] found but not as specified"
      - "[kind] name description", e.g.
        "[Subscription] my-operator in namespace openshift-operators not as specified"

    Anything unrecognized yields empty fields.
    """
    detail = strip_violation_prefix(message).strip()
    if not detail:
        return ParsedResource()

    if detail[0] == "[":
        kind, name = _parse_bracketed_kind(detail)
    else:
        kind, name = _parse_kind_first(detail)

    return ParsedResource(kind=kind, name=name, namespace=_parse_namespace(detail))
