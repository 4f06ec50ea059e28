"""验证配置管理模块 - targets、sentinel常量与覆盖项"""

import json
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .utils.paths import get_working_tree

# sourceRoot地址格式
SOURCE_ROOT_PATTERN = r"https://raw.githubusercontent.com/ampproject/amphtml/\d{13}/"

# mappings哨兵常量
SENTINEL_SOURCE_FILE = "src/polyfills/abort-controller.js"  # 编译进v0.js的第一个文件
SENTINEL_FIRST_LINE_CODE = "class AbortController {"  # 该文件的第一行代码


@dataclass(frozen=True)
class Sentinel:
    """首个映射的文件和代码 - 入口模块import顺序变化时需同步更新"""

    source_file: str = SENTINEL_SOURCE_FILE
    first_line_code: str = SENTINEL_FIRST_LINE_CODE


@dataclass(frozen=True)
class VerificationTarget:
    """一个待验证的map产物及其构建命令"""

    name: str
    map_path: str
    build_command: Optional[str] = None
    label: Optional[str] = None
    origin_pattern: str = SOURCE_ROOT_PATTERN
    sentinel: Sentinel = Sentinel()

    @property
    def display_name(self) -> str:
        return self.label or self.name


DEFAULT_TARGETS: Tuple[VerificationTarget, ...] = (
    VerificationTarget(
        name="classic",
        map_path="dist/v0.js.map",
        build_command="amp dist --core_runtime_only --full_sourcemaps",
        label="v0.js",
    ),
    VerificationTarget(
        name="module",
        map_path="dist/v0.mjs.map",
        build_command="amp dist --core_runtime_only --full_sourcemaps --esm",
        label="v0.mjs",
    ),
)


def _optional_string(data: Dict[str, Any], key: str, where: str) -> Optional[str]:
    """读取可选字符串字段，类型不对时抛出ValueError"""
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"'{where}{key}' must be a string, got {type(value).__name__}")
    return value


class VerifierConfig:
    """单次验证运行的配置"""

    TARGET_PRESETS = {
        'all': ['classic', 'module'],  # 默认，两个bundle都检查
        'classic': ['classic'],
        'module': ['module'],
    }

    def __init__(self, root: Optional[str] = None,
                 targets: str = 'all',
                 config_file: Optional[str] = None,
                 skip_build: bool = False,
                 keep_going: bool = False,
                 check_remote: bool = False):
        """初始化配置

        Args:
            root: 工作树目录，None则使用MAPGUARD_ROOT或当前目录
            targets: 预设名或逗号分隔的target列表
            config_file: 可选的JSON覆盖文件（targets、sentinel等）
            skip_build: 只检查已构建的map
            keep_going: 某个target失败后继续检查其余target
            check_remote: 通过HTTP探测sourceRoot地址

        Raises:
            ValueError: 配置文件无法读取或内容不合法
        """
        overrides = self._load_config_file(config_file) if config_file else {}

        self.root = get_working_tree(root if root is not None else _optional_string(overrides, "root", ""))
        self.skip_build = skip_build
        self.keep_going = keep_going
        self.check_remote = check_remote

        self.origin_pattern = self._parse_origin_pattern(overrides)
        self.sentinel = self._parse_sentinel(overrides.get("sentinel"))
        self.available_targets = self._build_targets(overrides.get("targets"))
        self.targets = self._select_targets(targets)

    def _load_config_file(self, config_file: str) -> Dict[str, Any]:
        """读取JSON覆盖文件"""
        path = Path(config_file).expanduser()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Could not load config file {path}: {e}")
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        return data

    def _parse_origin_pattern(self, overrides: Dict[str, Any]) -> str:
        pattern = _optional_string(overrides, "origin_pattern", "")
        if pattern is None:
            return SOURCE_ROOT_PATTERN
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValueError(f"'origin_pattern' is not a valid regular expression: {e}")
        return pattern

    def _parse_sentinel(self, data: Any) -> Sentinel:
        """解析sentinel覆盖项，缺省字段沿用默认常量"""
        if data is None:
            return Sentinel()
        if not isinstance(data, dict):
            raise ValueError(f"'sentinel' must be an object, got {type(data).__name__}")

        source_file = _optional_string(data, "source_file", "sentinel.")
        first_line_code = _optional_string(data, "first_line_code", "sentinel.")
        return Sentinel(
            source_file=SENTINEL_SOURCE_FILE if source_file is None else source_file,
            first_line_code=SENTINEL_FIRST_LINE_CODE if first_line_code is None else first_line_code,
        )

    def _build_targets(self, data: Any) -> Dict[str, VerificationTarget]:
        """为每个target套用共享的sentinel和origin pattern"""
        if data is None:
            base = list(DEFAULT_TARGETS)
        else:
            base = self._parse_targets(data)

        return {
            target.name: replace(target, origin_pattern=self.origin_pattern, sentinel=self.sentinel)
            for target in base
        }

    def _parse_targets(self, data: Any) -> List[VerificationTarget]:
        """校验配置文件中的targets列表：每项必须有name和map"""
        if not isinstance(data, list) or not data:
            raise ValueError("'targets' must be a non-empty array of objects")

        base = []
        seen = set()
        for index, item in enumerate(data):
            where = f"targets[{index}]."
            if not isinstance(item, dict):
                raise ValueError(f"'targets[{index}]' must be an object, got {type(item).__name__}")
            for key in ("name", "map"):
                if not item.get(key):
                    raise ValueError(f"'{where}{key}' is required")
            name = _optional_string(item, "name", where)
            if name in seen:
                raise ValueError(f"Duplicate target name '{name}'")
            seen.add(name)
            base.append(VerificationTarget(
                name=name,
                map_path=_optional_string(item, "map", where),
                build_command=_optional_string(item, "build", where),
                label=_optional_string(item, "label", where),
            ))
        return base

    def _select_targets(self, targets: str) -> List[VerificationTarget]:
        """解析预设名或逗号分隔列表，保持声明顺序"""
        if targets in self.TARGET_PRESETS and not self._has_custom_targets():
            names = self.TARGET_PRESETS[targets]
        elif targets == 'all':
            names = list(self.available_targets)
        else:
            names = [name.strip() for name in targets.split(',') if name.strip()]

        unknown = [name for name in names if name not in self.available_targets]
        if unknown:
            raise ValueError(
                f"Unknown target(s): {', '.join(unknown)}. "
                f"Available: {', '.join(self.available_targets)}"
            )
        return [self.available_targets[name] for name in names]

    def _has_custom_targets(self) -> bool:
        return set(self.available_targets) != {target.name for target in DEFAULT_TARGETS}
