"""Text written into the thoughts repository and code repositories."""

from .paths import contract_home

DEFAULT_GITIGNORE = """# OS files
.DS_Store
Thumbs.db

# Editor files
.vscode/
.idea/
*.swp
*.swo
*~

# Temporary files
*.tmp
*.bak
"""

REPO_README = """# {repo_name} Thoughts

This directory contains thoughts and notes specific to the {repo_name} repository.

- `{user}/` - Your personal notes for this repository
- `shared/` - Team-shared notes for this repository
"""

GLOBAL_README = """# Global Thoughts

This directory contains thoughts and notes that apply across all repositories.

- `{user}/` - Your personal cross-repository notes
- `shared/` - Team-shared cross-repository notes
"""

CLAUDE_MD = """# Thoughts Directory Structure

This directory contains developer thoughts and notes for the {repo_name} repository.
It is managed by the `thoughts` tool and should not be committed to the code repository.

## Structure

- `{user}/` -> `{repo_path}/{user}/` (your personal notes for this repository)
- `shared/` -> `{repo_path}/shared/` (team-shared notes for this repository)
- `global/` -> `{global_path}/` (cross-repository thoughts)
  - `{user}/` - your personal notes that apply across all repositories
  - `shared/` - team-shared notes that apply across all repositories
- `searchable/` - hard links to every file above, for search tools that do not follow symlinks

## Searching

Search inside `thoughts/searchable/` rather than the symlinked directories.
Files there are hard links, so reading them is the same as reading the originals,
but edit the files through their symlinked paths so new files land in the right place.

## Usage

Create markdown files in these directories to document:
- Architecture decisions
- Design notes
- TODO items
- Investigation results
- Any other development thoughts

Quick access:
- `thoughts/{user}/` for your repo-specific notes (most common)
- `thoughts/global/{user}/` for your cross-repo notes

These files are automatically synced with your thoughts repository after each commit,
or manually with `thoughts sync`.

## Important

- Never commit the thoughts/ directory to your code repository
- The git pre-commit hook will prevent accidental commits
- Use `thoughts sync` to manually sync changes
- Use `thoughts status` to see sync status
"""


def generate_claude_md(thoughts_repo: str, repos_dir: str, repo_name: str, user: str, global_dir: str = "global") -> str:
    """Render the CLAUDE.md guide placed in a code repository's thoughts/ directory."""
    root = contract_home(thoughts_repo)
    return CLAUDE_MD.format(
        repo_name=repo_name,
        user=user,
        repo_path=f"{root}/{repos_dir}/{repo_name}",
        global_path=f"{root}/{global_dir}",
    )
