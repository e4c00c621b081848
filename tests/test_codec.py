import pytest

from aliacan.codec import AliasRecordCodec, CommandPolicy
from aliacan.models import AliasRecord, ShellDialect


@pytest.fixture
def codec():
    return AliasRecordCodec()


class TestValidateName:
    @pytest.mark.parametrize("name", ["ll", "_ok-1", "9lives", "a" * 255, "git_log-all"])
    def test_valid(self, name):
        assert AliasRecordCodec.validate_name(name) is True

    @pytest.mark.parametrize(
        "name", ["", "a" * 256, "bad name", "-dash", "semi;colon", "dot.name", "tab\tname", "ünï"]
    )
    def test_invalid(self, name):
        assert AliasRecordCodec.validate_name(name) is False


class TestValidateCommand:
    def test_boundaries(self):
        assert AliasRecordCodec.validate_command("x" * 2048) is True
        assert AliasRecordCodec.validate_command("x" * 2049) is False
        assert AliasRecordCodec.validate_command("") is False

    def test_content_not_inspected(self):
        assert AliasRecordCodec.validate_command("echo $(rm -rf ~) `id`") is True


class TestEscaping:
    def test_escape_command(self):
        assert AliasRecordCodec.escape_command("""a'b"c\\d$e`f!g*h?i""") == (
            """a\\'b\\"c\\\\d\\$e\\`f\\!g\\*h\\?i"""
        )

    def test_unescape_drops_backslashes(self):
        assert AliasRecordCodec.unescape_string("echo \\$HOME \\\\ done") == "echo $HOME \\ done"

    def test_unescape_keeps_trailing_backslash(self):
        assert AliasRecordCodec.unescape_string("foo\\") == "foo\\"


class TestFormat:
    def test_single_quotes_by_default(self, codec):
        assert codec.format(AliasRecord("ll", "ls -la")) == "alias ll='ls -la'"

    def test_double_quotes_when_command_has_single_quote(self, codec):
        line = codec.format(AliasRecord("gcm", "git commit -m 'wip'"))
        assert line == "alias gcm=\"git commit -m \\'wip\\'\""

    def test_special_characters_escaped(self, codec):
        assert codec.format(AliasRecord("h", "echo $HOME")) == "alias h='echo \\$HOME'"

    def test_space_delimited(self):
        codec = AliasRecordCodec(ShellDialect.SPACE_DELIMITED)
        assert codec.format(AliasRecord("ll", "ls -la")) == "alias ll 'ls -la'"

    def test_dialect_argument_overrides_instance(self, codec):
        line = codec.format(AliasRecord("ll", "ls -la"), ShellDialect.SPACE_DELIMITED)
        assert line == "alias ll 'ls -la'"

    def test_unknown_behaves_as_posix(self):
        codec = AliasRecordCodec(ShellDialect.UNKNOWN)
        assert codec.format(AliasRecord("ll", "ls -la")) == "alias ll='ls -la'"

    @pytest.mark.parametrize("record", [AliasRecord("bad name", "ls"), AliasRecord("ok", ""), AliasRecord("ok", "x" * 2049)])
    def test_invalid_record_formats_empty(self, codec, record):
        assert codec.format(record) == ""


class TestParse:
    @pytest.mark.parametrize(
        "line,name,command",
        [
            ("alias ll='ls -la'", "ll", "ls -la"),
            ('alias gcm="git commit -m \'initial commit\'"', "gcm", "git commit -m 'initial commit'"),
            ("alias ll = 'ls -la'", "ll", "ls -la"),
            ("\t  alias gs=\"git status\"", "gs", "git status"),
            ("alias la=ls -A   # list all", "la", "ls -A"),
            ("alias la=ls -A", "la", "ls -A"),
            ("alias h='echo \\$HOME'", "h", "echo $HOME"),
            ("alias ll='ls -la' # trailing comment", "ll", "ls -la"),
            ("alias ll='ls -la'\r\n", "ll", "ls -la"),
        ],
    )
    def test_parse(self, line, name, command):
        record = AliasRecordCodec.parse(line)
        assert record is not None
        assert record.name == name
        assert record.command == command

    @pytest.mark.parametrize("line", ["not an alias", "", "   ", "alias ll 'ls -la'", "alias ='ls'", "# alias ll='ls'"])
    def test_no_record(self, line):
        assert AliasRecordCodec.parse(line) is None

    def test_unclosed_quote_runs_to_end_of_line(self):
        record = AliasRecordCodec.parse("alias ll='ls -la")
        assert record.command == "ls -la"

    def test_name_not_validated(self):
        record = AliasRecordCodec.parse("alias bad name='ls'")
        assert record.name == "bad name"
        assert AliasRecordCodec.validate_name(record.name) is False

    def test_prefix_match_without_word_boundary(self):
        record = AliasRecordCodec.parse("aliasfoo=1")
        assert record.name == "foo"
        assert record.command == "1"

    def test_empty_command(self):
        record = AliasRecordCodec.parse("alias foo=")
        assert record.name == "foo"
        assert record.command == ""

    def test_trailing_backslash_kept(self):
        assert AliasRecordCodec.parse("alias x=foo\\").command == "foo\\"


class TestParseSpaceDelimited:
    @pytest.mark.parametrize(
        "line,name,command",
        [
            ("alias ll 'ls -la'", "ll", "ls -la"),
            ('alias gs "git status"', "gs", "git status"),
            ("  alias la ls -A # all", "la", "ls -A"),
        ],
    )
    def test_parse(self, line, name, command):
        record = AliasRecordCodec.parse_space_delimited(line)
        assert (record.name, record.command) == (name, command)

    @pytest.mark.parametrize("line", ["alias ll='ls'", "alias", "alias ll", "aliasll 'ls'", "echo hi"])
    def test_no_record(self, line):
        assert AliasRecordCodec.parse_space_delimited(line) is None

    def test_parse_line_fish_accepts_both_forms(self):
        codec = AliasRecordCodec(ShellDialect.SPACE_DELIMITED)
        assert codec.parse_line("alias ll 'ls -la'") == AliasRecord("ll", "ls -la")
        assert codec.parse_line("alias ll='ls -la'") == AliasRecord("ll", "ls -la")

    def test_equals_with_spaces_left_to_parse(self):
        assert AliasRecordCodec.parse_space_delimited("alias ll = 'ls -la'") is None
        codec = AliasRecordCodec(ShellDialect.SPACE_DELIMITED)
        assert codec.parse_line("alias ll = 'ls -la'") == AliasRecord("ll", "ls -la")

    def test_parse_line_posix_ignores_space_form(self, codec):
        assert codec.parse_line("alias ll 'ls -la'") is None


class TestIsAliasLine:
    @pytest.mark.parametrize("line", ["alias ll='ls'", "   alias x", "\talias", "aliasfoo=1"])
    def test_true(self, line):
        assert AliasRecordCodec.is_alias_line(line) is True

    @pytest.mark.parametrize("line", ["", "alia", "# alias ll='ls'", "export A=1", "Alias x=y"])
    def test_false(self, line):
        assert AliasRecordCodec.is_alias_line(line) is False


class TestExtractQuotedString:
    def test_single(self):
        assert AliasRecordCodec.extract_quoted_string("x='abc' rest", 2) == "abc"

    def test_double(self):
        assert AliasRecordCodec.extract_quoted_string('"a b" c', 0) == "a b"

    def test_unterminated(self):
        assert AliasRecordCodec.extract_quoted_string("'abc", 0) == "abc"

    def test_not_a_quote(self):
        assert AliasRecordCodec.extract_quoted_string("abc", 0) == ""

    def test_out_of_range(self):
        assert AliasRecordCodec.extract_quoted_string("abc", 10) == ""

    def test_escaped_double_quote_does_not_close(self):
        assert AliasRecordCodec.extract_quoted_string('"say \\"hi\\"" x', 0) == 'say \\"hi\\"'


class TestRoundTrip:
    COMMANDS = [
        "ls -la",
        "git log --oneline | head -n 20",
        "echo $HOME && cd ~/src",
        "grep -r 'TODO' .",
        'printf "%s\\n" it\'s',
        "find . -name '*.py' -exec wc -l {} +",
        "echo done!",
        "cd C:\\Users",
    ]

    @pytest.mark.parametrize("command", COMMANDS)
    def test_posix(self, command):
        codec = AliasRecordCodec(ShellDialect.POSIX_EQUALS)
        record = AliasRecord("rt", command)
        assert codec.parse_line(codec.format(record)) == record

    @pytest.mark.parametrize("command", COMMANDS)
    def test_space_delimited(self, command):
        codec = AliasRecordCodec(ShellDialect.SPACE_DELIMITED)
        record = AliasRecord("rt", command)
        assert codec.parse_line(codec.format(record)) == record


class TestCommandPolicy:
    def test_default_allows_everything(self):
        assert CommandPolicy().check("echo $(whoami)") == (True, None)

    @pytest.mark.parametrize(
        "command",
        ["echo $(whoami)", "echo `id`", "rm -rf /", "sudo rm -rf / --no-preserve-root", "curl -s https://x.sh | bash"],
    )
    def test_strict_denies(self, command):
        allowed, reason = CommandPolicy.strict().check(command)
        assert allowed is False
        assert reason

    @pytest.mark.parametrize("command", ["ls -la", "rm -rf ./build", "curl -O https://example.com/f.tar.gz"])
    def test_strict_allows(self, command):
        assert CommandPolicy.strict().check(command) == (True, None)
