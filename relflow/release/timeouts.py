from __future__ import annotations

# Hosting platform calls (gh CLI, Gitea API)
GH_TIMEOUT_SECONDS = 60.0
HTTP_TIMEOUT_SECONDS = 30.0

# Local git operations (status, rev-parse, checkout, add, commit)
GIT_TIMEOUT_SECONDS = 30.0

# Network-bound git operations (fetch, push, ls-remote)
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# Changelog generation walks the whole history
CHANGELOG_TIMEOUT_SECONDS = 5 * 60.0

# `go mod tidy` may download modules
GO_TIDY_TIMEOUT_SECONDS = 10 * 60.0
