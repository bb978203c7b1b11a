import logging

from constants.roles import ProjectAccessType, SystemAccess
from models.project import Project
from repositories.project_repository import ProjectRepository, UserRepository
from utils.exceptions import ProjectAccessError

logger = logging.getLogger(__name__)


class ProjectService:

    @staticmethod
    def get_accessible(project_id: int, user_id: int) -> Project:
        """
        返回用户可访问的项目，否则抛出 ProjectAccessError（404）：
          - 项目不存在或已删除 => 404
          - ADMIN => 可访问所有项目
          - 项目成员且访问类型不是 NO_ACCESS => 可访问
          - 项目默认访问类型为 GLOBAL_ROLE => 所有有角色的用户可访问
        """
        user = UserRepository.find_active_by_id(user_id)
        project = ProjectRepository.get_by_id(project_id)
        if not user or not project:
            raise ProjectAccessError()

        if user.is_admin():
            return project
        if user.access == SystemAccess.NONE.value:
            logger.info("user %s has no project access", user_id)
            raise ProjectAccessError()

        member = ProjectRepository.get_member(project_id, user_id)
        if member is not None and member.access_type != ProjectAccessType.NO_ACCESS.value:
            return project
        if project.is_globally_accessible():
            return project
        raise ProjectAccessError()
