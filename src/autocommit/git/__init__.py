"""Git operations for autocommit."""

from .args import match_git_args, parse_input_array
from .utils import (
	CommitResult,
	FileStatus,
	GitClient,
	GitError,
	StatusEntry,
	StatusSnapshot,
	get_repo_root,
	parse_porcelain,
	run_git_command,
)

__all__ = [
	"CommitResult",
	"FileStatus",
	"GitClient",
	"GitError",
	"StatusEntry",
	"StatusSnapshot",
	"get_repo_root",
	"match_git_args",
	"parse_input_array",
	"parse_porcelain",
	"run_git_command",
]
