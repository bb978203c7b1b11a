# utils/rich_text.py
"""
步骤富文本内容（节点树）的查找替换。

节点只有两种受支持的形态：
  - 文本叶子：{"type": "text", "text": "..."}
  - 容器：   {"type": "...", "content": [节点, ...]}
其余形态原样透传。替换只修改文本叶子的 text，其它字段与树结构保持不变。
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Union

from constants.test_case import TEXT_NODE_TYPE
from utils.exceptions import ContentParseError


@dataclass
class TextNode:
    text: str
    raw: Dict[str, Any]


@dataclass
class ContainerNode:
    children: List["Node"]
    raw: Dict[str, Any]


@dataclass
class OpaqueNode:
    raw: Any


Node = Union[TextNode, ContainerNode, OpaqueNode]


def parse_node(raw: Any) -> Node:
    if isinstance(raw, dict):
        if raw.get("type") == TEXT_NODE_TYPE and isinstance(raw.get("text"), str):
            return TextNode(text=raw["text"], raw=raw)
        if isinstance(raw.get("content"), list):
            return ContainerNode(children=[parse_node(c) for c in raw["content"]], raw=raw)
    return OpaqueNode(raw=raw)


def dump_node(node: Node) -> Any:
    if isinstance(node, TextNode):
        return {**node.raw, "text": node.text}
    if isinstance(node, ContainerNode):
        return {**node.raw, "content": [dump_node(c) for c in node.children]}
    return node.raw


class TextMatcher:
    """
    按匹配选项替换文本：
    - use_regex: 全局正则替换，replacement 原样插入（不展开反向引用）
    - 否则字面量匹配；不区分大小写时在小写副本上查找，
      但匹配区间以外的内容保留原文大小写；从左到右、不重叠
    """

    def __init__(self, search: str, replacement: str = "", use_regex: bool = False,
                 case_sensitive: bool = False):
        if not search:
            raise ValueError("search pattern must not be empty")
        self.search = search
        self.replacement = replacement
        self.use_regex = use_regex
        self.case_sensitive = case_sensitive
        self._regex = None
        if use_regex:
            self._regex = re.compile(search, 0 if case_sensitive else re.IGNORECASE)

    def replace(self, text: str) -> str:
        if self._regex is not None:
            return self._regex.sub(lambda _m: self.replacement, text)
        if self.case_sensitive:
            return self._splice(text, text, self.search)
        lowered_text, lowered_search = text.lower(), self.search.lower()
        if len(lowered_text) != len(text) or len(lowered_search) != len(self.search):
            # 小写后长度变化（如 "İ"）时下标无法对齐，改用忽略大小写的正则
            pattern = re.compile(re.escape(self.search), re.IGNORECASE)
            return pattern.sub(lambda _m: self.replacement, text)
        return self._splice(text, lowered_text, lowered_search)

    def _splice(self, original: str, haystack: str, needle: str) -> str:
        index = haystack.find(needle)
        if index == -1:
            return original
        parts = []
        last = 0
        while index != -1:
            parts.append(original[last:index])
            parts.append(self.replacement)
            last = index + len(needle)
            index = haystack.find(needle, last)
        parts.append(original[last:])
        return "".join(parts)


def rewrite_node(node: Node, matcher: TextMatcher) -> Tuple[Node, bool]:
    """深度优先重写，返回 (新节点, 是否有变化)"""
    if isinstance(node, TextNode):
        if not node.text:
            return node, False
        new_text = matcher.replace(node.text)
        if new_text == node.text:
            return node, False
        return TextNode(text=new_text, raw=node.raw), True
    if isinstance(node, ContainerNode):
        changed = False
        children = []
        for child in node.children:
            new_child, child_changed = rewrite_node(child, matcher)
            children.append(new_child)
            changed = changed or child_changed
        if not changed:
            return node, False
        return ContainerNode(children=children, raw=node.raw), True
    return node, False


def _load_tree(content: Any) -> Tuple[Dict[str, Any], bool]:
    """返回 (根节点 dict, 是否为 JSON 字符串形式)"""
    if isinstance(content, str):
        try:
            loaded = json.loads(content)
        except ValueError as exc:
            raise ContentParseError(f"content is not valid JSON: {exc}") from exc
        as_string = True
    else:
        loaded = content
        as_string = False
    if not isinstance(loaded, dict):
        raise ContentParseError(f"content root must be an object, got {type(loaded).__name__}")
    return loaded, as_string


def rewrite_content(content: Any, matcher: TextMatcher) -> Any:
    """
    对一份步骤内容执行查找替换。
    - 空内容原样返回
    - JSON 字符串形式的内容，结果仍为 JSON 字符串
    - 没有任何匹配时返回原对象本身
    解析失败时抛出 ContentParseError，由调用方决定是否跳过。
    """
    if content is None or content == "":
        return content
    tree, as_string = _load_tree(content)
    new_root, changed = rewrite_node(parse_node(tree), matcher)
    if not changed:
        return content
    dumped = dump_node(new_root)
    return json.dumps(dumped, ensure_ascii=False) if as_string else dumped
