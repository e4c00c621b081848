"""Reading and writing alias definitions in shell startup files"""

import re
from typing import List, Optional, Tuple

from aliacan.models import AliasRecord, ShellDialect

MAX_NAME_LENGTH = 255
MAX_COMMAND_LENGTH = 2048

KEYWORD = "alias"
HORIZONTAL_WS = " \t"
QUOTES = ("'", '"')
ESCAPED_CHARS = frozenset("'\"\\$`!*?")

NAME_PATTERN = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_\-]*")


class AliasRecordCodec:
    """Validate, format and parse alias lines.

    Only ``format`` depends on the dialect held by an instance; everything
    else is a static function so it can be used without choosing a shell.

    ``parse`` only understands the ``alias name=command`` form. Fish's
    ``alias name command`` form is handled by ``parse_space_delimited``,
    and ``parse_line`` picks the right one for the instance dialect.
    """

    def __init__(self, dialect: ShellDialect = ShellDialect.POSIX_EQUALS):
        self.dialect = dialect

    @staticmethod
    def validate_name(name: str) -> bool:
        if not name or len(name) > MAX_NAME_LENGTH:
            return False
        return NAME_PATTERN.fullmatch(name) is not None

    @staticmethod
    def validate_command(command: str) -> bool:
        """Length check only, the content is not inspected (see CommandPolicy)"""
        return bool(command) and len(command) <= MAX_COMMAND_LENGTH

    @staticmethod
    def escape_command(command: str) -> str:
        return "".join("\\" + c if c in ESCAPED_CHARS else c for c in command)

    @staticmethod
    def unescape_string(text: str) -> str:
        """Drop each backslash and keep the next character literally.

        A trailing lone backslash is kept as is.
        """
        out = []
        pending = False
        for c in text:
            if pending:
                out.append(c)
                pending = False
            elif c == "\\":
                pending = True
            else:
                out.append(c)
        if pending:
            out.append("\\")
        return "".join(out)

    def format(self, record: AliasRecord, dialect: Optional[ShellDialect] = None) -> str:
        """Render a record as a startup file line, or "" if it is invalid"""
        if not self.validate_name(record.name) or not self.validate_command(record.command):
            return ""

        dialect = dialect or self.dialect
        # Single quotes suppress expansion, so prefer them unless the command has one
        quote = '"' if "'" in record.command else "'"
        quoted = f"{quote}{self.escape_command(record.command)}{quote}"

        if dialect == ShellDialect.SPACE_DELIMITED:
            return f"alias {record.name} {quoted}"
        return f"alias {record.name}={quoted}"

    @staticmethod
    def is_alias_line(line: str) -> bool:
        # Prefix match: "aliasfoo=1" also counts
        return line.lstrip(HORIZONTAL_WS)[: len(KEYWORD)] == KEYWORD

    @staticmethod
    def extract_quoted_string(text: str, start: int) -> str:
        """Return the text between the quote at ``start`` and its closing quote.

        Unterminated strings run to the end of ``text``. Inside double quotes a
        backslash-escaped quote does not close the string.
        """
        if start < 0 or start >= len(text) or text[start] not in QUOTES:
            return ""

        quote = text[start]
        i = start + 1
        while i < len(text):
            c = text[i]
            if c == "\\" and quote == '"':
                i += 2
                continue
            if c == quote:
                return text[start + 1 : i]
            i += 1
        return text[start + 1 :]

    @classmethod
    def _extract_command(cls, text: str) -> str:
        text = text.lstrip(HORIZONTAL_WS)
        if not text:
            return ""

        if text[0] in QUOTES:
            raw = cls.extract_quoted_string(text, 0)
        else:
            comment = text.find("#")
            raw = text if comment == -1 else text[:comment]
            raw = raw.rstrip(HORIZONTAL_WS)
        return cls.unescape_string(raw)

    @classmethod
    def parse(cls, line: str) -> Optional[AliasRecord]:
        """Parse ``alias name=command``; returns None for anything else.

        The name is not validated here. Callers must run ``validate_name``
        before acting on a parsed record.
        """
        line = line.rstrip("\r\n")
        text = line.lstrip(HORIZONTAL_WS)
        if not text.startswith(KEYWORD):
            return None

        eq = text.find("=", len(KEYWORD))
        if eq == -1:
            return None

        name = text[len(KEYWORD) : eq].strip(HORIZONTAL_WS)
        if not name:
            return None

        return AliasRecord(name=name, command=cls._extract_command(text[eq + 1 :]))

    @classmethod
    def parse_space_delimited(cls, line: str) -> Optional[AliasRecord]:
        """Parse fish's ``alias name command`` form"""
        line = line.rstrip("\r\n")
        text = line.lstrip(HORIZONTAL_WS)
        if not text.startswith(KEYWORD):
            return None

        rest = text[len(KEYWORD) :]
        if not rest or rest[0] not in HORIZONTAL_WS:
            return None
        rest = rest.lstrip(HORIZONTAL_WS)

        match = re.match(r"[^\s=]+", rest)
        if not match:
            return None
        after = rest[match.end() :]
        if not after or after[0] not in HORIZONTAL_WS:
            return None
        if after.lstrip(HORIZONTAL_WS).startswith("="):
            # "alias ll = cmd" is the equals form, leave it to parse
            return None

        return AliasRecord(name=match.group(0), command=cls._extract_command(after))

    def parse_line(self, line: str) -> Optional[AliasRecord]:
        """Parse a line using the syntax of this codec's dialect"""
        if self.dialect == ShellDialect.SPACE_DELIMITED:
            # fish accepts both forms
            return self.parse_space_delimited(line) or self.parse(line)
        return self.parse(line)


class CommandPolicy:
    """Deny-list of command constructs.

    The default policy allows everything, matching ``validate_command``.
    """

    STRICT_RULES = [
        (r"\$\(", "command substitution is not allowed"),
        (r"`", "backtick command substitution is not allowed"),
        (r"\brm\s+-\w*r\w*\s+/(?:\s|$)", "recursive delete of / is not allowed"),
        (r"\b(?:curl|wget)\b[^|]*\|\s*(?:ba|z|da|fi)?sh\b", "piping downloads into a shell is not allowed"),
    ]

    def __init__(self, rules: Optional[List[Tuple[str, str]]] = None):
        self.rules = [(re.compile(pattern), reason) for pattern, reason in (rules or [])]

    @classmethod
    def strict(cls) -> "CommandPolicy":
        return cls(cls.STRICT_RULES)

    def check(self, command: str) -> Tuple[bool, Optional[str]]:
        """Return (allowed, reason)"""
        for pattern, reason in self.rules:
            if pattern.search(command):
                return False, reason
        return True, None
