# wyog

A small, self-contained implementation of a subset of git. It reads and writes
ordinary `.git` directories: zlib-compressed loose objects, the version 2
index file, refs and ignore rules. The repositories it produces can be
inspected with regular git tools.

## Installation

```
pip install .
```

## Command line

Everything is reached through the `wyog` command:

```
wyog init [path]                     Create a new, empty repository
wyog add paths...                    Stage file contents in the index
wyog rm paths...                     Remove files from the worktree and the index
wyog commit -m MESSAGE               Record the staged changes
wyog status                          Show the working tree status
wyog ls-files [-v]                   List staged files (-v: every recorded detail)
wyog check-ignore paths...           Print the paths that ignore rules exclude
wyog hash-object [-t TYPE] [-w] path Compute an object id; -w stores the object
wyog cat-file TYPE OBJECT            Print the content of an object
wyog ls-tree [-r] TREE-ISH           Pretty-print a tree object
wyog rev-parse [-t TYPE] NAME        Resolve a name to an object id
wyog show-ref                        List references
wyog tag [-a] [NAME [OBJECT]]        List tags, or create one
wyog checkout COMMIT PATH            Write a commit's tree into a new or empty directory
wyog log [COMMIT]                    Print history as a Graphviz digraph
wyog --version                       Print the version
```

`TYPE` is one of `blob`, `commit`, `tag` or `tree`. Names given to
`cat-file`, `ls-tree`, `rev-parse`, `tag`, `checkout` and `log` may be `HEAD`,
an object id or an unambiguous prefix of at least four hex digits, or the name
of a tag, branch or remote branch.

Errors are printed to standard error as `Error: ...` and the command exits
with status 1.

A short session:

```
wyog init demo
cd demo
echo hello > greeting.txt
wyog add greeting.txt
wyog commit -m "First commit"
wyog status
wyog log > history.dot
```

Notes on some commands:

- `init` creates `.git` with `branches`, `objects`, `refs/tags`,
  `refs/heads`, a `description`, a `HEAD` pointing at `refs/heads/main` and a
  `config` with `repositoryformatversion = 0`.
- `commit` takes the author from the `user` section (`name` and `email`) of
  `$XDG_CONFIG_HOME/git/config` (default `~/.config/git/config`), overlaid by
  `~/.gitconfig` when it exists. That first file must exist. Newlines in the
  message are removed. The current branch, or `HEAD` when detached, is moved
  to the new commit.
- `tag -a` writes a tag object with a fixed tagger and message; without `-a`
  the tag is a plain reference under `refs/tags`.
- `status` compares HEAD with the index, then the index with the worktree
  (files whose modification time changed are re-hashed), then lists untracked
  files that are not ignored.
- Ignore rules come from `.git/info/exclude`, the global
  `$XDG_CONFIG_HOME/git/ignore`, and every `.gitignore` staged in the index,
  each of which applies to its own directory.

## Library use

The same operations are available from Python:

```python
from wyog.repository import Repository, find_repo_required
from wyog.objects import read_object
from wyog import plumbing

repo = Repository(find_repo_required("."), False)
sha = plumbing.rev_parse(repo, "HEAD", "commit")
print(read_object(repo, sha).serialize().decode())
```

The modules:

- `wyog.repository` – `Repository` (paths inside `.git`, name resolution,
  index reading and writing, `tree_from_index`, `read_gitignore`, `rm`,
  `active_branch`), `find_repo` and `find_repo_required`.
- `wyog.objects` – `Blob`, `Commit`, `Tag`, `Tree`, `parse_object`,
  `read_object`, `write_object`, `find_object` and `tree_to_dict`.
- `wyog.kvlm` – `Kvlm` and `parse_kvlm`, the header-and-message format of
  commits and tags.
- `wyog.tree` – `TreeLeaf`, `parse_tree`, `serialize_tree`, `leaf_sort_key`.
- `wyog.index` – `Index`, `IndexEntry`, `parse_index`, `serialize_index`.
- `wyog.refs` – `ref_resolve` and `ref_list`.
- `wyog.ignore` – `IgnoreRule`, `Ignores`, `parse_rule`, `parse_rules`,
  `pattern_matches`.
- `wyog.config` – `Config` and `read_config`.
- `wyog.plumbing` – `object_hash`, `cat_file`, `ls_tree`, `rev_parse`,
  `show_ref`, `tag_create`, `ref_create`, `checkout`, `tree_checkout`,
  `log_graphviz`, `repo_create`, `default_config`.
- `wyog.porcelain` – `add`, `commit`, `create_commit`, `status_branch`,
  `status_head_index`, `status_index_worktree`, `ls_files`, `check_ignore`.
- `wyog.cli` – `main`, the command-line entry point.

Most command functions return their output as strings or lists of lines
instead of printing it. Failures are reported by raising
`wyog.errors.GitError`.

## Limitations

Only loose objects are supported (no packfiles), only version 2 index files
are read and written, and there is no merging, no command to create or switch
branches, and no network transport. Every staged file is recorded as a regular
file with mode 644. `ls-files -v` looks up user and group names and so needs a
POSIX system.