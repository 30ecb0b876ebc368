"""Command-line entry point."""

from __future__ import annotations

import argparse
import sys

from wyog import plumbing, porcelain
from wyog.errors import GitError
from wyog.refs import ref_list
from wyog.repository import Repository, find_repo, find_repo_required

_VERSION = "0.0.1"


def _open_repo(path: str = ".") -> Repository:
    return Repository(find_repo_required(path))


def _write_bytes(data: bytes) -> None:
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        sys.stdout.write(data.decode("utf-8", "replace"))
        return
    sys.stdout.flush()
    buffer.write(data)
    buffer.flush()


def _print_lines(lines) -> None:
    for line in lines:
        print(line)


def _cmd_add(args) -> None:
    porcelain.add(_open_repo(), args.paths)


def _cmd_cat_file(args) -> None:
    _write_bytes(plumbing.cat_file(_open_repo(), args.object, args.type))


def _cmd_check_ignore(args) -> None:
    _print_lines(porcelain.check_ignore(_open_repo(), args.paths))


def _cmd_checkout(args) -> None:
    plumbing.checkout(_open_repo(), args.commit, args.path)


def _cmd_commit(args) -> None:
    porcelain.commit(_open_repo(), args.message)


def _cmd_hash_object(args) -> None:
    repo = _open_repo() if args.write else None
    try:
        with open(args.path, "rb") as fh:
            data = fh.read()
    except OSError as exc:
        raise GitError(f"{args.path} not found") from exc
    print(plumbing.object_hash(data, args.type, repo))


def _cmd_init(args) -> None:
    plumbing.repo_create(args.path)


def _cmd_log(args) -> None:
    print(plumbing.log_graphviz(_open_repo(), args.commit), end="")


def _cmd_ls_files(args) -> None:
    found = find_repo(".")
    if found is None:
        return
    print(porcelain.ls_files(Repository(found), args.verbose), end="")


def _cmd_ls_tree(args) -> None:
    _print_lines(plumbing.ls_tree(_open_repo(), args.tree, args.recursive))


def _cmd_rev_parse(args) -> None:
    print(plumbing.rev_parse(_open_repo(), args.name, args.type or None))


def _cmd_rm(args) -> None:
    repo = _open_repo()
    repo.write_index(repo.read_index())
    repo.rm(args.paths, delete=True, skip_missing=False)


def _cmd_show_ref(args) -> None:
    repo = _open_repo()
    _print_lines(plumbing.show_ref(ref_list(repo), True, "refs"))


def _cmd_status(args) -> None:
    repo = _open_repo()
    index = repo.read_index()
    sys.stdout.write(porcelain.status_branch(repo))
    sys.stdout.write(porcelain.status_head_index(repo, index))
    sys.stdout.write(porcelain.status_index_worktree(repo, index))


def _cmd_tag(args) -> None:
    repo = _open_repo()
    if args.name is not None:
        plumbing.tag_create(repo, args.name, args.object or "HEAD", args.annotate)
        return
    tags = ref_list(repo).get("tags")
    if not isinstance(tags, dict):
        raise GitError("tags ref is incorrect")
    _print_lines(plumbing.show_ref(tags, False, ""))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wyog",
        description="An implementation of a subset of git commands",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s version {_VERSION}")
    sub = parser.add_subparsers(title="commands")

    cmd = sub.add_parser("add", help="Add files contents to index.")
    cmd.add_argument("paths", nargs="+")
    cmd.set_defaults(func=_cmd_add)

    cmd = sub.add_parser("cat-file", help="Provide content of repository objects")
    cmd.add_argument("type", choices=plumbing.OBJECT_TYPES)
    cmd.add_argument("object")
    cmd.set_defaults(func=_cmd_cat_file)

    cmd = sub.add_parser("check-ignore", help="Check path(s) against ignore rules.")
    cmd.add_argument("paths", nargs="+")
    cmd.set_defaults(func=_cmd_check_ignore)

    cmd = sub.add_parser("checkout", help="Checkout a commit inside of a directory.")
    cmd.add_argument("commit")
    cmd.add_argument("path")
    cmd.set_defaults(func=_cmd_checkout)

    cmd = sub.add_parser("commit", help="Record changes to the repository.")
    cmd.add_argument("-m", "--message", required=True,
                     help="Message to associate with this commit")
    cmd.set_defaults(func=_cmd_commit)

    cmd = sub.add_parser("hash-object",
                         help="Compute object ID and optionally creates a blob from a file")
    cmd.add_argument("-t", "--type", default="blob", choices=plumbing.OBJECT_TYPES)
    cmd.add_argument("-w", "--write", action="store_true",
                     help="Write the object into the database")
    cmd.add_argument("path")
    cmd.set_defaults(func=_cmd_hash_object)

    cmd = sub.add_parser("init", help="Initialize a new, empty repository.")
    cmd.add_argument("path", nargs="?", default=".")
    cmd.set_defaults(func=_cmd_init)

    cmd = sub.add_parser("log", help="Display history of a given commit.")
    cmd.add_argument("commit", nargs="?", default="HEAD")
    cmd.set_defaults(func=_cmd_log)

    cmd = sub.add_parser("ls-files", help="List all staged files")
    cmd.add_argument("-v", "--verbose", action="store_true", help="Show everything")
    cmd.set_defaults(func=_cmd_ls_files)

    cmd = sub.add_parser("ls-tree", help="Pretty-print a tree object")
    cmd.add_argument("-r", "--recursive", action="store_true", help="Recurse into sub-trees")
    cmd.add_argument("tree")
    cmd.set_defaults(func=_cmd_ls_tree)

    cmd = sub.add_parser("rev-parse", help="Parse revision (or other objects) identifiers")
    cmd.add_argument("-t", "--type", default="", choices=("",) + plumbing.OBJECT_TYPES)
    cmd.add_argument("name")
    cmd.set_defaults(func=_cmd_rev_parse)

    cmd = sub.add_parser("rm", help="Remove files from the working tree and the index.")
    cmd.add_argument("paths", nargs="+")
    cmd.set_defaults(func=_cmd_rm)

    cmd = sub.add_parser("show-ref", help="List references")
    cmd.set_defaults(func=_cmd_show_ref)

    cmd = sub.add_parser("status", help="show the working tree status.")
    cmd.set_defaults(func=_cmd_status)

    cmd = sub.add_parser("tag", help="List and create tags")
    cmd.add_argument("-a", "--annotate", action="store_true", help="Make an annotated tag")
    cmd.add_argument("name", nargs="?")
    cmd.add_argument("object", nargs="?")
    cmd.set_defaults(func=_cmd_tag)

    return parser


def main(argv=None) -> int:
    """Run a command; returns the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    try:
        func(args)
    except (GitError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())