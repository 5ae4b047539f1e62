"""Rules for classifying carrier service code responses.

A response that matches any interactive rule means the carrier expects
more input and the session should stay open.
"""

import re
from dataclasses import dataclass

VALID_CODE_PATTERNS = [
    re.compile(r"^[*#][0-9*#]+#$"),
    re.compile(r"^\*[0-9*#]+$"),
]


@dataclass(frozen=True)
class MenuRule:
    """A pattern and whether a match marks the response as interactive."""

    name: str
    pattern: re.Pattern[str]
    interactive: bool = True

    def matches(self, text: str) -> bool:
        return bool(self.pattern.search(text))


def _rule(name: str, pattern: str) -> MenuRule:
    return MenuRule(name, re.compile(pattern, re.IGNORECASE | re.MULTILINE))


INTERACTIVE_MENU_RULES: list[MenuRule] = [
    # Numbered items must start a line so amounts like "KES 100.50" don't count
    _rule("numbered_item", r"^\s*\d+\.\s*\w+"),
    _rule("numbered_paren_item", r"^\s*\d+\)\s*\w+"),
    _rule("reply_with", r"reply\s+with"),
    _rule("enter_number", r"enter\s+\d+"),
    _rule("press_number", r"press\s+\d+"),
    _rule("select_option", r"select\s+option"),
    _rule("choose", r"\bchoose\b"),
    _rule("exit_option", r"0\.\s*(exit|cancel)"),
    _rule("back_option", r"\*\s*back"),
    _rule("next_option", r"#\s*next"),
]


def matching_rules(text: str, rules: list[MenuRule] | None = None) -> list[str]:
    """Names of the rules that match a response, for diagnostics."""
    rules = INTERACTIVE_MENU_RULES if rules is None else rules
    return [rule.name for rule in rules if rule.matches(text)]


def is_interactive(text: str, rules: list[MenuRule] | None = None) -> bool:
    """Classify a carrier response as interactive (menu) or terminal.

    Args:
        text: Response text from the carrier
        rules: Rule table to apply (defaults to INTERACTIVE_MENU_RULES)

    Returns:
        True if any rule marks the response as interactive
    """
    rules = INTERACTIVE_MENU_RULES if rules is None else rules
    return any(rule.interactive and rule.matches(text) for rule in rules)


def normalize_code(code: str) -> str:
    """Add a missing leading '*' and trailing '#' to a service code.

    >>> normalize_code("144")
    '*144#'
    """
    code = re.sub(r"\s+", "", code)
    if not code:
        return code
    if not code.startswith(("*", "#")):
        code = "*" + code
    if not code.endswith("#"):
        code = code + "#"
    return code


def is_valid_code(code: str) -> bool:
    return any(pattern.match(code) for pattern in VALID_CODE_PATTERNS)
