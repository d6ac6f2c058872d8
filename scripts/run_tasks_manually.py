# run_tasks_manually.py
import asyncio
import logging
import sys
import os

# Запуск из корня репозитория: python scripts/run_tasks_manually.py [task_name ...]
sys.path.append(os.getcwd())

from app.core.logging_config import setup_logging
from app.core.redis import close_redis_client
from app.tasks_registry import TASKS


async def main(task_names: list[str]):
    """
    Поочередно запускает задачи из реестра (по умолчанию - все).
    """
    print("--- Manual Task Runner ---")

    unknown = [name for name in task_names if name not in TASKS]
    if unknown:
        print(f"Unknown tasks: {', '.join(unknown)}. Available: {', '.join(TASKS)}")
        return

    total = len(task_names)
    try:
        for index, name in enumerate(task_names, start=1):
            print(f"\n[{index}/{total}] Running: {name}...")
            result = await TASKS[name]["function"]()
            print(f"Done. {result}")
    finally:
        await close_redis_client()

    print("\n--- All tasks completed! ---")


if __name__ == "__main__":
    setup_logging()
    logging.getLogger(__name__).info("Manual task run requested.")

    try:
        asyncio.run(main(sys.argv[1:] or list(TASKS)))
    except KeyboardInterrupt:
        print("\nScript interrupted by user.")
