"""Command templates for the ``jj`` executable and thin output parsers.

Templates are plain argument tuples. Arguments may contain ``$placeholders``
(``$change_id``, ``$commit_id``, ``$file``, ``$width``, ``$operation_id``,
``$revset``) that are filled from the current selection right before a
command is dispatched.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from string import Template

JJ = "jj"
FIELD_SEP = "\x1f"
PLACEHOLDERS = ("change_id", "commit_id", "file", "width", "operation_id", "revset")

_q = f'"{FIELD_SEP}"'
LOG_TEMPLATE = (
    f"change_id.shortest(8) ++ {_q} ++ commit_id.shortest(8) ++ {_q} ++ author.email() ++ {_q}"
    f' ++ bookmarks.join(" ") ++ {_q} ++ if(description, description.first_line(), "(no description)")'
    ' ++ "\\n"'
)
OP_LOG_TEMPLATE = (
    f'id.short() ++ {_q} ++ time.start().ago() ++ {_q} ++ description.first_line() ++ "\\n"'
)
BOOKMARK_TEMPLATE = 'name ++ "\\n"'


def _jj(*args: str, color: bool = False) -> tuple[str, ...]:
    return (JJ, "--color", "always" if color else "never", *args)


def log(revset: str, limit: int = 0) -> tuple[str, ...]:
    args = ["log", "-T", LOG_TEMPLATE]
    if revset:
        args.extend(["-r", revset])
    if limit > 0:
        args.extend(["--limit", str(limit)])
    return _jj(*args)


def op_log(limit: int = 0) -> tuple[str, ...]:
    args = ["op", "log", "-T", OP_LOG_TEMPLATE]
    if limit > 0:
        args.extend(["--limit", str(limit)])
    return _jj(*args)


def op_show(operation_id: str) -> tuple[str, ...]:
    return _jj("op", "show", operation_id, "--patch", color=True)


def show(change_id: str) -> tuple[str, ...]:
    return _jj("show", "-r", change_id, color=True)


def diff(change_id: str, files: tuple[str, ...] = ()) -> tuple[str, ...]:
    return _jj("diff", "-r", change_id, *files, color=True)


def diff_summary(change_id: str) -> tuple[str, ...]:
    return _jj("diff", "--summary", "-r", change_id)


def undo() -> tuple[str, ...]:
    return _jj("undo")


def redo() -> tuple[str, ...]:
    return _jj("redo")


def bookmark_list() -> tuple[str, ...]:
    return _jj("bookmark", "list", "-T", BOOKMARK_TEMPLATE)


def bookmark_set(name: str, change_id: str) -> tuple[str, ...]:
    return _jj("bookmark", "set", name, "-r", change_id, "--allow-backwards")


def bookmark_delete(name: str) -> tuple[str, ...]:
    return _jj("bookmark", "delete", name)


def git_fetch(remote: str) -> tuple[str, ...]:
    return _jj("git", "fetch", "--remote", remote)


def git_push(remote: str, change_id: str | None = None) -> tuple[str, ...]:
    if change_id:
        return _jj("git", "push", "--remote", remote, "--change", change_id)
    return _jj("git", "push", "--remote", remote)


def escape_file_name(path: str) -> str:
    """Quote ``path`` as a fileset string literal."""
    escaped = path.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def files_revset(path: str) -> str:
    return f"files({escape_file_name(path)})"


def split(change_id: str, files: tuple[str, ...], parallel: bool = False) -> tuple[str, ...]:
    args = ["split", "-r", change_id]
    if parallel:
        args.append("--parallel")
    return _jj(*args, *map(escape_file_name, files))


def squash_files(change_id: str, files: tuple[str, ...]) -> tuple[str, ...]:
    return _jj("squash", "-r", change_id, *map(escape_file_name, files))


def restore(change_id: str, files: tuple[str, ...]) -> tuple[str, ...]:
    return _jj("restore", "--changes-in", change_id, *map(escape_file_name, files))


def restore_interactive(change_id: str, path: str) -> tuple[str, ...]:
    return _jj("restore", "--changes-in", change_id, "--interactive", escape_file_name(path))


def absorb(change_id: str, files: tuple[str, ...]) -> tuple[str, ...]:
    return _jj("absorb", "--from", change_id, *map(escape_file_name, files))


def expand_template(args: tuple[str, ...] | list[str], context: Mapping[str, str]) -> tuple[str, ...]:
    """Fill ``$placeholders`` from ``context``; unknown ones are left as-is."""
    return tuple(Template(arg).safe_substitute(context) for arg in args)


def with_executable(args: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Prefix user-written argument lists (``["log", ...]``) with ``jj``."""
    args = tuple(args)
    if args and args[0] == JJ:
        return args
    return (JJ, *args)


@dataclass(frozen=True)
class LogRow:
    graph: str
    change_id: str
    commit_id: str
    author: str
    bookmarks: tuple[str, ...]
    description: str


@dataclass(frozen=True)
class OpRow:
    graph: str
    operation_id: str
    when: str
    description: str


def _split_graph(head: str) -> tuple[str, str]:
    stripped = head.rstrip()
    token = stripped.split()[-1] if stripped.split() else ""
    return stripped[: len(stripped) - len(token)], token


def parse_log(output: str) -> list[LogRow | str]:
    """Parse ``log`` output into rows; pure graph lines are kept as strings."""
    rows: list[LogRow | str] = []
    for line in output.splitlines():
        if FIELD_SEP not in line:
            rows.append(line)
            continue
        head, commit_id, author, bookmarks, description = (line.split(FIELD_SEP) + [""] * 4)[:5]
        graph, change_id = _split_graph(head)
        rows.append(
            LogRow(
                graph=graph,
                change_id=change_id,
                commit_id=commit_id,
                author=author,
                bookmarks=tuple(bookmarks.split()),
                description=description,
            )
        )
    return rows


def parse_op_log(output: str) -> list[OpRow | str]:
    rows: list[OpRow | str] = []
    for line in output.splitlines():
        if FIELD_SEP not in line:
            rows.append(line)
            continue
        head, when, description = (line.split(FIELD_SEP) + [""] * 2)[:3]
        graph, operation_id = _split_graph(head)
        rows.append(OpRow(graph=graph, operation_id=operation_id, when=when, description=description))
    return rows


def parse_bookmarks(output: str) -> list[str]:
    seen: list[str] = []
    for line in output.splitlines():
        name = line.strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def parse_diff_summary(output: str) -> list[tuple[str, str]]:
    """Parse ``diff --summary`` lines such as ``M src/app.py``."""
    out: list[tuple[str, str]] = []
    for line in output.splitlines():
        status, _, path = line.partition(" ")
        if status and path:
            out.append((status, path.strip()))
    return out
