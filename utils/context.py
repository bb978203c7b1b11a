# utils/context.py
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class MutationContext:
    """
    一次批量编辑调用的上下文：
    - 由 controller 构造，显式传入 service / 快照 / 审计
    - 各组件不再从 flask.g 读取请求信息
    """
    project_id: int
    user_id: Optional[int] = None
    request_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectId": self.project_id,
            "userId": self.user_id,
            "requestId": self.request_id,
        }
