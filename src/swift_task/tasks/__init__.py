"""
Task subsystem.

Components:
- task_models.py: data structures (Board, Folder, Task, TaskTree) + JSON shape
- task_store.py: in-memory tree with validated CRUD, saved through a gateway
- task_search.py: scoped search with forced expansion + highlighting
- countdown.py: due-date countdown and its display text
- task_scheduler.py: render guard, search debouncer, countdown ticker
"""
