"""Command model: global flags, subcommand and arguments."""

import re
from dataclasses import dataclass, field, replace
from typing import Optional

# Flags that take the next token as their value
VALUE_FLAGS = ("-c", "-C", "--git-dir", "--work-tree", "--namespace")

# Flags written as --flag=value
PREFIX_FLAGS = ("--exec-path=", "--git-dir=", "--work-tree=", "--namespace=")

# Flags that change which repository git operates on. These travel with the
# executable so that context queries see the same repository.
REPO_FLAGS = ("--bare",)

# Flags that only affect output; kept in front of the subcommand
PAGER_FLAGS = ("-p", "--paginate", "--no-pager", "--no-replace-objects")

TOOL_FLAGS = ("--noop", "--version", "--help")

_WHITESPACE = re.compile(r"\s")


def quote_arg(arg: str) -> str:
    """Quote an argument for display.

    Arguments containing whitespace are wrapped in single quotes. Only used
    when printing commands, never when executing them.
    """
    if _WHITESPACE.search(arg):
        return f"'{arg}'"
    return arg


@dataclass(frozen=True)
class GlobalFlag:
    """A git-level flag that precedes the subcommand."""

    flag: str
    value: Optional[str] = None

    def tokens(self) -> list[str]:
        if self.value is None:
            return [self.flag]
        return [self.flag, self.value]


@dataclass(frozen=True)
class Command:
    """A command line for an external program, usually git."""

    subcommand: Optional[str]
    args: tuple[str, ...] = ()
    global_flags: tuple[GlobalFlag, ...] = ()
    local_flags: tuple[str, ...] = ()
    program: tuple[str, ...] = ("git",)
    noop: bool = False

    @property
    def executable(self) -> list[str]:
        """Program plus repository-level global flags."""
        tokens = list(self.program)
        for flag in self.global_flags:
            tokens.extend(flag.tokens())
        return tokens

    @property
    def argv(self) -> list[str]:
        argv = self.executable + list(self.local_flags)
        if self.subcommand is not None:
            argv.append(self.subcommand)
        argv.extend(self.args)
        return argv

    def words(self) -> list[str]:
        """Positional (non-flag) arguments after the subcommand."""
        return [arg for arg in self.args if not arg.startswith("-")]

    def with_args(self, *args: str) -> "Command":
        return replace(self, args=tuple(args))

    def git(self, subcommand: str, *args: str) -> "Command":
        """Another git command sharing this command's executable and flags."""
        return replace(self, subcommand=subcommand, args=tuple(args), local_flags=())

    def __str__(self) -> str:
        return " ".join(quote_arg(arg) for arg in self.argv)


def external(program: list[str], *args: str) -> Command:
    """A command for a non-git program (browser launcher, etc.)."""
    return Command(subcommand=None, args=tuple(args), program=tuple(program))


@dataclass
class ParseState:
    """Mutable state while slurping global flags."""

    global_flags: list[GlobalFlag] = field(default_factory=list)
    local_flags: list[str] = field(default_factory=list)
    noop: bool = False


def _is_global_flag(token: str) -> bool:
    return (
        token in VALUE_FLAGS
        or token in REPO_FLAGS
        or token in PAGER_FLAGS
        or token in TOOL_FLAGS
        or token.startswith(PREFIX_FLAGS)
    )


def parse_argv(argv: list[str], program: str = "git") -> Command:
    """Split raw argv into global flags, subcommand and arguments.

    Args:
        argv: Arguments as typed by the user (without the program name)
        program: Executable to hand the command to

    Returns:
        Parsed Command. `subcommand` is None for a bare invocation.
    """
    remaining = list(argv)
    state = ParseState()
    leading: list[str] = []

    while remaining and _is_global_flag(remaining[0]):
        flag = remaining.pop(0)
        if flag == "--noop":
            state.noop = True
        elif flag in ("--version", "--help"):
            leading.append(flag[2:])
        elif flag in VALUE_FLAGS:
            value = remaining.pop(0) if remaining else ""
            state.global_flags.append(GlobalFlag(flag, value))
        elif flag in PAGER_FLAGS:
            state.local_flags.append(flag)
        else:
            state.global_flags.append(GlobalFlag(flag))

    remaining = leading + remaining
    subcommand = remaining.pop(0) if remaining else None

    return Command(
        subcommand=subcommand,
        args=tuple(remaining),
        global_flags=tuple(state.global_flags),
        local_flags=tuple(state.local_flags),
        program=(program,),
        noop=state.noop,
    )


def config_overrides(command: Command) -> list[tuple[str, Optional[str]]]:
    """Config pairs passed with `-c key=value`, in order."""
    pairs = []
    for flag in command.global_flags:
        if flag.flag == "-c" and flag.value is not None:
            key, _, value = flag.value.partition("=")
            pairs.append((key, value if "=" in flag.value else None))
    return pairs
