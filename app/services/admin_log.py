"""
services/admin_log.py

관리자 행위 로그 기록 / 조회 서비스.

이 파일은 관리자(Admin)가 수행한 계정 관리 행위를
AdminActionLog 테이블에 기록하고, 최근 로그를 조회하는 역할을 담당한다.

설계 원칙:
- 로그 행은 대상 계정 변경과 같은 트랜잭션에서 저장 (commit 은 UserStore.save)
- 로그 데이터는 수정/삭제하지 않는 것을 전제로 설계

"""

from sqlalchemy import desc, select
from sqlalchemy.orm import Session, aliased

from app.models.admin_log import AdminAction, AdminActionLog
from app.models.user import User


"""
관리자 행위 로그 기록 함수

- actor          : 행위를 수행한 관리자
- action         : 수행된 관리자 행위 유형
- target         : 행위 대상 사용자
- before / after : 변경 전 / 후 상태 또는 권한 (선택)
- reason         : 비활성화 / 차단 사유 (선택)

NOTE:
- db.commit()은 호출 측에서 수행

"""
def write_admin_log(
    db: Session,
    *,
    actor: User,
    action: AdminAction,
    target: User | None = None,
    before=None,
    after=None,
    reason=None,
) -> AdminActionLog:
    log = AdminActionLog(
        actor_id=actor.id,
        action=action,
        target_user_id=target.id if target is not None else None,
        target_email=target.email if target is not None else None,
        before=before,
        after=after,
        reason=reason,
    )
    db.add(log)
    return log


def list_admin_logs(db: Session, *, limit: int = 50) -> list[dict]:
    limit = max(1, min(limit, 200))

    Actor = aliased(User)
    Target = aliased(User)

    rows = db.execute(
        select(AdminActionLog, Actor, Target)
        .outerjoin(Actor, Actor.id == AdminActionLog.actor_id)
        .outerjoin(Target, Target.id == AdminActionLog.target_user_id)
        .order_by(desc(AdminActionLog.created_at))
        .limit(limit)
    ).all()

    result = []
    for log, actor, target in rows:
        result.append(
            {
                "id": str(log.id),
                "created_at": log.created_at.isoformat(),
                "action": log.action.value,
                "before": log.before,
                "after": log.after,
                "reason": log.reason,
                "actor": (
                    {
                        "id": str(actor.id),
                        "email": actor.email,
                        "name": actor.name,
                        "role": actor.role.value,
                    }
                    if actor
                    else None
                ),
                "target": (
                    {
                        "id": str(target.id),
                        "email": target.email,
                        "name": target.name,
                        "role": target.role.value,
                    }
                    if target
                    else {"id": None, "email": log.target_email}
                ),
            }
        )
    return result
