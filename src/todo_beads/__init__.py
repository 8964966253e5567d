"""
Keep an agent session's todo list in sync with beads issues.

Subpackages:
- sync: models, vocabulary mapping, mapping store, anchor resolver, engine
- beads: `bd` CLI client
- tools: todowrite / todoread handlers for the host agent
- cli: command-line entrypoint
"""
