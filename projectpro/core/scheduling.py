"""
Task Dependency Rules

Dependencies form a directed graph inside one project
(task -> depends_on). The graph must stay acyclic, and a task may not
start while a finish_to_start predecessor is unfinished.
"""
from collections import defaultdict, deque
from typing import Dict, Iterable, List, Set, Tuple
from sqlalchemy.orm import Session
from projectpro.models.task import Task, TaskDependency

FINISHED_STATUSES = ("completed",)


def would_create_cycle(edges: Iterable[Tuple[str, str]], task_id: str, depends_on_id: str) -> bool:
    """
    True if adding task_id -> depends_on_id closes a cycle.

    A cycle appears exactly when task_id is already reachable from
    depends_on_id by following existing edges.
    """
    if task_id == depends_on_id:
        return True

    graph: Dict[str, Set[str]] = defaultdict(set)
    for source, target in edges:
        graph[source].add(target)

    seen = {depends_on_id}
    queue = deque([depends_on_id])
    while queue:
        current = queue.popleft()
        for nxt in graph[current]:
            if nxt == task_id:
                return True
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return False


def project_dependency_edges(db: Session, tenant_id: str, project_id: str) -> List[Tuple[str, str]]:
    rows = (
        db.query(TaskDependency.task_id, TaskDependency.depends_on_task_id)
        .join(Task, Task.id == TaskDependency.task_id)
        .filter(
            TaskDependency.tenant_id == tenant_id,
            Task.project_id == project_id,
        )
        .all()
    )
    return [(row[0], row[1]) for row in rows]


def blocking_predecessors(db: Session, task: Task) -> List[Task]:
    """finish_to_start predecessors of task that are not finished yet."""
    return (
        db.query(Task)
        .join(TaskDependency, TaskDependency.depends_on_task_id == Task.id)
        .filter(
            TaskDependency.task_id == task.id,
            TaskDependency.tenant_id == task.tenant_id,
            TaskDependency.dependency_type == "finish_to_start",
            Task.status.notin_(FINISHED_STATUSES),
        )
        .all()
    )
