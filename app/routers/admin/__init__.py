# app/routers/admin/__init__.py

from fastapi import APIRouter, Depends
from app.dependencies import get_admin_account_id

from . import rewards, redemptions, points, tasks

# Зависимость get_admin_account_id применяется ко ВСЕМ эндпоинтам раздела:
# доступ есть только у аккаунтов из ADMIN_ACCOUNT_IDS.
router = APIRouter(
    tags=["Admin"],
    dependencies=[Depends(get_admin_account_id)]
)

# /admin/rewards, /admin/rewards/{id}
router.include_router(rewards.router, prefix="/rewards")

# /admin/redemptions, /admin/redemptions/stats, /admin/redemptions/{id}/applied
router.include_router(redemptions.router, prefix="/redemptions")

# /admin/points/{account_id}/adjust
router.include_router(points.router, prefix="/points")

# /admin/tasks, /admin/tasks/run
router.include_router(tasks.router, prefix="/tasks")
