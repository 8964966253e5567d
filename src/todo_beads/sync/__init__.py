"""
Sync subsystem.

Components:
- models.py: data structures (Todo, BeadsIssue, MappingDocument)
- translate.py: todo <-> beads status/priority mapping
- mapping_store.py: JSON-file and in-memory correlation stores
- anchor.py: per-session epic lookup/creation
- engine.py: forward/backward reconciliation
"""
