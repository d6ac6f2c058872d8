# app/routers/admin/tasks.py

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, status

from app.schemas.admin import TaskInfo, TaskRunRequest
from app.tasks_registry import TASKS, get_tasks_list

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[TaskInfo])
def get_tasks_list_endpoint():
    """
    [АДМИН] Возвращает список фоновых задач, доступных для ручного запуска.
    """
    return get_tasks_list()


@router.post("/run", status_code=status.HTTP_202_ACCEPTED)
async def run_task_endpoint(
    request_data: TaskRunRequest,
    background_tasks: BackgroundTasks
):
    """
    [АДМИН] Запускает одну фоновую задачу или все сразу. Результат пишется в лог.
    """
    task_names = list(TASKS) if request_data.task_name == "all" else [request_data.task_name]

    for name in task_names:
        background_tasks.add_task(TASKS[name]["function"])
        logger.info(f"Background task '{name}' was manually triggered.")

    return {"status": "accepted", "tasks": task_names}
