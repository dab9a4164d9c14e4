from portfolio_analytics.analytics.schedule.critical_path import (
    build_dependency_graph,
    compute_project_schedule,
    compute_schedule,
    overdue_critical_tasks,
    task_duration,
    topological_order,
)

__all__ = [
    "build_dependency_graph",
    "compute_project_schedule",
    "compute_schedule",
    "overdue_critical_tasks",
    "task_duration",
    "topological_order",
]
