# Marks `babytracker.deps` as a package so imports like
# `from babytracker.deps.auth import require_ui_or_api_key` work reliably.
