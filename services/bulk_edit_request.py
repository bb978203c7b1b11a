# services/bulk_edit_request.py
"""
批量编辑请求的解析与校验。

整个请求要么全部通过、要么全部拒绝：所有问题收集到一起后
以 ValidationError 抛出（details 中每一项为 {path, message}）。
未知字段直接忽略。
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from constants.test_case import CustomFieldOperation, StepsOperation
from utils.exceptions import ValidationError

_MISSING = object()

# 请求中的标准字段名
STANDARD_FIELDS = ("name", "state", "automated", "estimate")
RELATION_FIELDS = ("tags", "issues")


@dataclass
class RelationDelta:
    connect: List[int] = field(default_factory=list)
    disconnect: List[int] = field(default_factory=list)


@dataclass
class FieldUpdates:
    # 只包含请求中出现的标准字段（稀疏）
    values: Dict[str, Any] = field(default_factory=dict)
    tags: Optional[RelationDelta] = None
    issues: Optional[RelationDelta] = None


@dataclass
class CustomFieldUpdate:
    field_id: int
    value: Any
    operation: CustomFieldOperation


@dataclass
class NewStep:
    step: Any
    expected_result: Any
    order: int


@dataclass
class SearchOptions:
    use_regex: bool = False
    case_sensitive: bool = False


@dataclass
class StepsReplace:
    new_steps: List[NewStep]

    @property
    def operation(self) -> StepsOperation:
        return StepsOperation.REPLACE


@dataclass
class StepsSearchReplace:
    search_pattern: str
    replace_pattern: str = ""
    options: SearchOptions = field(default_factory=SearchOptions)

    @property
    def operation(self) -> StepsOperation:
        return StepsOperation.SEARCH_REPLACE


StepsUpdate = Union[StepsReplace, StepsSearchReplace]


@dataclass
class BulkEditRequest:
    case_ids: List[int]
    updates: FieldUpdates
    custom_field_updates: List[CustomFieldUpdate] = field(default_factory=list)
    steps_update: Optional[StepsUpdate] = None
    create_versions: bool = True


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class _Checker:
    """收集校验问题"""

    def __init__(self):
        self.details: List[Dict[str, str]] = []

    def fail(self, path: str, message: str):
        self.details.append({"path": path, "message": message})
        return None

    def positive_int(self, value, path: str) -> Optional[int]:
        if not _is_int(value) or value <= 0:
            return self.fail(path, "必须是正整数")
        return value

    def boolean(self, value, path: str) -> Optional[bool]:
        if not isinstance(value, bool):
            return self.fail(path, "必须是布尔值")
        return value

    def string(self, value, path: str) -> Optional[str]:
        if not isinstance(value, str):
            return self.fail(path, "必须是字符串")
        return value

    def obj(self, value, path: str) -> Optional[dict]:
        if not isinstance(value, dict):
            return self.fail(path, "必须是对象")
        return value

    def array(self, value, path: str) -> Optional[list]:
        if not isinstance(value, list):
            return self.fail(path, "必须是数组")
        return value


def _parse_case_ids(raw, chk: _Checker) -> List[int]:
    if raw is _MISSING:
        chk.fail("caseIds", "不能为空")
        return []
    if chk.array(raw, "caseIds") is None:
        return []
    if not raw:
        chk.fail("caseIds", "至少需要一个用例ID")
        return []
    case_ids = []
    for i, value in enumerate(raw):
        if chk.positive_int(value, f"caseIds[{i}]") is not None:
            case_ids.append(value)
    if len(set(case_ids)) != len(case_ids):
        chk.fail("caseIds", "不能包含重复的用例ID")
    return case_ids


def _parse_relation_delta(raw, path: str, chk: _Checker) -> Optional[RelationDelta]:
    if chk.obj(raw, path) is None:
        return None
    delta = RelationDelta()
    for key in ("connect", "disconnect"):
        items = raw.get(key, _MISSING)
        if items is _MISSING:
            continue
        if chk.array(items, f"{path}.{key}") is None:
            continue
        for i, item in enumerate(items):
            item_path = f"{path}.{key}[{i}]"
            if chk.obj(item, item_path) is None:
                continue
            ref_id = chk.positive_int(item.get("id"), f"{item_path}.id")
            if ref_id is not None:
                getattr(delta, key).append(ref_id)
    return delta


def _parse_updates(raw, chk: _Checker) -> FieldUpdates:
    updates = FieldUpdates()
    if raw is _MISSING:
        chk.fail("updates", "不能为空")
        return updates
    if chk.obj(raw, "updates") is None:
        return updates

    if "name" in raw:
        if chk.string(raw["name"], "updates.name") is not None:
            updates.values["name"] = raw["name"]
    if "state" in raw:
        if chk.positive_int(raw["state"], "updates.state") is not None:
            updates.values["state"] = raw["state"]
    if "automated" in raw:
        if chk.boolean(raw["automated"], "updates.automated") is not None:
            updates.values["automated"] = raw["automated"]
    if "estimate" in raw:
        estimate = raw["estimate"]
        if isinstance(estimate, float) and estimate.is_integer():
            estimate = int(estimate)
        if not _is_int(estimate):
            chk.fail("updates.estimate", "必须是整数")
        else:
            updates.values["estimate"] = estimate

    for relation in RELATION_FIELDS:
        if relation in raw:
            setattr(updates, relation, _parse_relation_delta(raw[relation], f"updates.{relation}", chk))
    return updates


def _parse_custom_field_updates(raw, chk: _Checker) -> List[CustomFieldUpdate]:
    if raw is _MISSING or raw is None:
        return []
    if chk.array(raw, "customFieldUpdates") is None:
        return []
    result = []
    for i, item in enumerate(raw):
        path = f"customFieldUpdates[{i}]"
        if chk.obj(item, path) is None:
            continue
        field_id = chk.positive_int(item.get("fieldId"), f"{path}.fieldId")
        operation = item.get("operation")
        if operation not in CustomFieldOperation.values():
            chk.fail(f"{path}.operation", f"必须是 {CustomFieldOperation.values()} 之一")
            continue
        if field_id is None:
            continue
        result.append(CustomFieldUpdate(
            field_id=field_id,
            value=item.get("value"),
            operation=CustomFieldOperation(operation),
        ))
    return result


def _parse_search_options(raw, chk: _Checker) -> SearchOptions:
    options = SearchOptions()
    if raw is _MISSING or raw is None:
        return options
    if chk.obj(raw, "stepsUpdates.searchOptions") is None:
        return options
    if "useRegex" in raw and chk.boolean(raw["useRegex"], "stepsUpdates.searchOptions.useRegex") is not None:
        options.use_regex = raw["useRegex"]
    if "caseSensitive" in raw and \
            chk.boolean(raw["caseSensitive"], "stepsUpdates.searchOptions.caseSensitive") is not None:
        options.case_sensitive = raw["caseSensitive"]
    return options


def _parse_steps_update(raw, chk: _Checker) -> Optional[StepsUpdate]:
    if raw is _MISSING or raw is None:
        return None
    if chk.obj(raw, "stepsUpdates") is None:
        return None

    operation = raw.get("operation")
    if operation == StepsOperation.REPLACE.value:
        new_steps_raw = raw.get("newSteps", _MISSING)
        if new_steps_raw is _MISSING:
            return chk.fail("stepsUpdates.newSteps", "replace 操作必须提供 newSteps")
        if chk.array(new_steps_raw, "stepsUpdates.newSteps") is None:
            return None
        new_steps = []
        for i, item in enumerate(new_steps_raw):
            path = f"stepsUpdates.newSteps[{i}]"
            if chk.obj(item, path) is None:
                continue
            order = item.get("order")
            if not _is_int(order):
                chk.fail(f"{path}.order", "必须是整数")
                continue
            new_steps.append(NewStep(
                step=item.get("step"),
                expected_result=item.get("expectedResult"),
                order=order,
            ))
        return StepsReplace(new_steps=new_steps)

    if operation == StepsOperation.SEARCH_REPLACE.value:
        search_pattern = raw.get("searchPattern")
        if not isinstance(search_pattern, str) or not search_pattern:
            chk.fail("stepsUpdates.searchPattern", "search-replace 操作必须提供非空的 searchPattern")
            search_pattern = None
        replace_pattern = raw.get("replacePattern")
        if replace_pattern is None:
            replace_pattern = ""
        elif chk.string(replace_pattern, "stepsUpdates.replacePattern") is None:
            replace_pattern = ""
        options = _parse_search_options(raw.get("searchOptions", _MISSING), chk)
        if search_pattern is None:
            return None
        if options.use_regex:
            try:
                re.compile(search_pattern)
            except re.error as exc:
                return chk.fail("stepsUpdates.searchPattern", f"正则表达式不合法: {exc}")
        return StepsSearchReplace(
            search_pattern=search_pattern,
            replace_pattern=replace_pattern,
            options=options,
        )

    return chk.fail("stepsUpdates.operation", f"必须是 {StepsOperation.values()} 之一")


def parse_bulk_edit_request(payload) -> BulkEditRequest:
    """校验原始请求体并返回 BulkEditRequest，任何问题都会抛出 ValidationError"""
    if not isinstance(payload, dict):
        raise ValidationError([{"path": "", "message": "请求体必须是 JSON 对象"}])

    chk = _Checker()
    case_ids = _parse_case_ids(payload.get("caseIds", _MISSING), chk)
    updates = _parse_updates(payload.get("updates", _MISSING), chk)
    custom_field_updates = _parse_custom_field_updates(payload.get("customFieldUpdates", _MISSING), chk)
    steps_update = _parse_steps_update(payload.get("stepsUpdates", _MISSING), chk)

    create_versions = payload.get("createVersions", True)
    if create_versions is None:
        create_versions = True
    chk.boolean(create_versions, "createVersions")

    if chk.details:
        raise ValidationError(chk.details)

    return BulkEditRequest(
        case_ids=case_ids,
        updates=updates,
        custom_field_updates=custom_field_updates,
        steps_update=steps_update,
        create_versions=create_versions,
    )
