"""Release bounded context.

- version: semantic versions and next-version resolution
- contracts: collaborator protocols shared by adapters and the orchestrator
- hooks / go_module: pre-release hook protocol and the Go module-path hook
- changelog / review: git-cliff and hosting-platform adapters
- preflight: environment validation
- orchestrator: the release state machine and its rollback
"""

from __future__ import annotations
