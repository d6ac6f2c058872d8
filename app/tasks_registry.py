# app/tasks_registry.py

from app.services import points_expiration

# --- Обертки над фоновыми задачами ---
# Каждая задача сама открывает сессии БД, поэтому сюда ничего не передается.

async def run_expire_points():
    return await points_expiration.expire_points_task()


# --- Реестр задач, доступных для ручного запуска из админки ---
# Ключ - имя задачи в API.
# 'function' - сама функция для вызова.
# 'description' - описание для отображения в админке.

TASKS = {
    "expire_points": {
        "function": run_expire_points,
        "description": "Списывает (сжигает) баллы, у которых истек срок действия.",
    },
}

def get_tasks_list():
    return [
        {"task_name": name, "description": data["description"]}
        for name, data in TASKS.items()
    ]
