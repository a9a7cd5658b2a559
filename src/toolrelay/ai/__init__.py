"""Tool routing, backend resolution and edit orchestration."""
