# Mission board: categories of ordered tasks, persisted as one local snapshot
#
# Components:
#   schema.py     - Data model (Category, Task, Direction) and JSON shape
#   store.py      - SQLite snapshot slot with seed-board fallback
#   tasks.py      - Pure task operations (add/toggle/delete/move)
#   categories.py - Pure category operations (add/update/delete)
#   stats.py      - Derived progress statistics
#   writer.py     - Inline and background snapshot writers
#   auth.py       - Session gate (Identity, local and Supabase adapters)
#   session.py    - Session-scoped owner of the live snapshot
#   config.py     - YAML + environment configuration
