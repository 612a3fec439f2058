"""Default configuration settings for autocommit."""

DEFAULT_CONFIG = {
	# Directory of the repository, relative to the working directory
	"cwd": ".",
	# Identity used for commits; empty values are filled from default_author
	"author_name": "",
	"author_email": "",
	"committer_name": "",
	"committer_email": "",
	# How missing author info is filled: github_actor, github_actions
	"default_author": "github_actor",
	# Commit message; empty means "Commit from GitHub Actions (<workflow>)"
	"message": "",
	# Extra arguments for git commit
	"commit": "",
	# true, false, or extra arguments for git fetch
	"fetch": "true",
	# Arguments for git pull; empty skips pulling
	"pull": "",
	# Branch to create or check out before committing
	"new_branch": "",
	# Arguments for git tag; empty skips tagging
	"tag": "",
	# Extra arguments for pushing tags
	"tag_push": "",
	# true, false, or extra arguments for git push
	"push": "true",
	# Remote that is fetched from and pushed to
	"remote": "origin",
	# Pathspec arguments for git add / git rm (string or list of strings)
	"add": "",
	"remove": "",
	# ignore, exitImmediately, exitAtEnd
	"pathspec_error_handling": "ignore",
}

# Environment variable prefixes checked for overrides, in increasing priority
ENV_PREFIXES = ("INPUT_", "AUTOCOMMIT_")

GITHUB_ACTIONS_BOT_NAME = "github-actions"
GITHUB_ACTIONS_BOT_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"
