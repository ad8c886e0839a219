from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.service.shared_kernel.app.interface.i_audit_log_repo import IAuditLogRepo
from boxoffice.service.shared_kernel.driven_adapter.model.audit_log_model import AuditLogModel


class AuditLogRepoImpl(IAuditLogRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    async def record(
        self,
        *,
        actor_id: int,
        action: str,
        target_type: str,
        target_id: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.session.add(
            AuditLogModel(
                actor_id=actor_id,
                action=action,
                target_type=target_type,
                target_id=target_id,
                detail=detail,
            )
        )
        await self.session.flush()
