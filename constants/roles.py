from __future__ import annotations

from enum import Enum


class SystemAccess(str, Enum):
    """
    用户的全局访问级别：
    - ADMIN 可访问所有项目
    - PROJECTADMIN 可访问被分配的项目
    - USER 依赖项目成员权限或项目默认权限
    - NONE 无任何项目访问权
    """

    ADMIN = "ADMIN"
    PROJECTADMIN = "PROJECTADMIN"
    USER = "USER"
    NONE = "NONE"

    @classmethod
    def values(cls) -> list[str]:
        return [access.value for access in cls]


class ProjectAccessType(str, Enum):
    """项目成员（或项目默认）的访问类型"""

    NO_ACCESS = "NO_ACCESS"
    SPECIFIC_ROLE = "SPECIFIC_ROLE"
    GLOBAL_ROLE = "GLOBAL_ROLE"

    @classmethod
    def values(cls) -> list[str]:
        return [t.value for t in cls]


DEFAULT_SYSTEM_ACCESS = SystemAccess.USER
DEFAULT_PROJECT_ACCESS = ProjectAccessType.SPECIFIC_ROLE
