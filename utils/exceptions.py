# utils/exceptions.py
from typing import Any, Dict, List, Optional
from werkzeug.exceptions import HTTPException


class BizError(HTTPException):
    code: int  # HTTP 状态码
    message: str  # 业务提示
    data: Optional[Any]  # 附加数据

    def __init__(self, message: str = "业务异常", code: int = 400, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(description=message)


class ValidationError(BizError):
    """请求结构校验失败，details 中列出全部问题"""

    def __init__(self, details: List[Dict[str, str]], message: str = "请求参数不合法"):
        self.details = details
        super().__init__(message=message, code=400, data={"details": details})


class PartialMatchError(BizError):
    """部分用例不存在、已删除或不属于该项目"""

    def __init__(self, missing_case_ids: List[int]):
        self.missing_case_ids = missing_case_ids
        super().__init__(
            message="部分用例不存在或不属于该项目",
            code=400,
            data={"missingCaseIds": missing_case_ids},
        )


class ProjectAccessError(BizError):
    # 统一按 404 返回，避免泄露项目是否存在
    def __init__(self, message: str = "项目不存在或无权访问"):
        super().__init__(message=message, code=404)


class MutationFailedError(BizError):
    # 内部原因只写日志，不返回给调用方
    def __init__(self, message: str = "批量编辑失败"):
        super().__init__(message=message, code=500)


class ContentParseError(ValueError):
    """步骤富文本内容无法解析为节点树"""
