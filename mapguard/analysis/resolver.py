"""Source Map位置解析 - 将压缩代码位置映射回原始源文件"""

import json
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

import sourcemap
from sourcemap.exceptions import SourceMapDecodeError

from ..core.document import SourceMapDocument
from ..core.errors import MalformedArtifact
from ..core.vlq import decode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OriginalPosition:
    """原始位置（0-based，与source map一致）"""

    source: str
    line: int
    column: int
    name: Optional[str] = None
    url: Optional[str] = None  # sourceRoot + source，错误上报服务使用的地址

    def __str__(self) -> str:
        location = f"{self.source}:{self.line + 1}:{self.column + 1}"
        return f"{location} ({self.name})" if self.name else location


class PositionResolver:
    """用sourcemap库索引文档，按生成位置查找原始位置"""

    def __init__(self, doc: SourceMapDocument):
        self.doc = doc
        # 先用严格解码器校验mappings，非法输入抛出SegmentDecodeError
        decode(doc.mappings)
        # sourceRoot不参与拼接，token.src保持为工作树相对路径
        data = doc.to_dict()
        data.pop("sourceRoot", None)
        try:
            self.index = sourcemap.loads(json.dumps(data))
        except (SourceMapDecodeError, ValueError) as e:
            raise MalformedArtifact(f"Could not index {doc.path}: {e}", {"path": doc.path})
        logger.debug(f"Indexed {len(self.index.tokens)} tokens from {doc.path}")

    def resolve(self, line: int, column: int) -> Optional[OriginalPosition]:
        """查找生成代码位置对应的原始位置，没有映射时返回None"""
        try:
            token = self.index.lookup(line=line, column=column)
        except IndexError:
            return None

        if token is None or not token.src:
            return None

        url = urljoin(self.doc.source_root, token.src) if self.doc.source_root else None
        return OriginalPosition(
            source=token.src,
            line=token.src_line,
            column=token.src_col,
            name=token.name,
            url=url,
        )


def resolve_position(doc: SourceMapDocument, line: int, column: int) -> Optional[OriginalPosition]:
    """单次查找的便捷函数"""
    return PositionResolver(doc).resolve(line, column)
