"""Source map验证服务 - 构建阶段 + 验证阶段的两段式流水线"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import httpx

from .analysis.checks import (
    CheckResult,
    check_mapping_sentinel,
    check_origin,
    check_sources,
)
from .analysis.remote import check_remote_origin
from .config import VerificationTarget
from .core.builder import BuildRunner
from .core.document import SourceMapDocument, load_source_map
from .core.errors import SourceMapCheckError
from .utils.paths import get_working_tree

logger = logging.getLogger(__name__)


@dataclass
class TargetReport:
    """单个target的检查结果（按执行顺序，首个失败后停止）"""

    target: VerificationTarget
    results: List[CheckResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.results) and all(result.ok for result in self.results)

    @property
    def failure(self) -> Optional[CheckResult]:
        for result in self.results:
            if not result.ok:
                return result
        return None


@dataclass
class VerificationReport:
    """整次运行的汇总，targets保持声明顺序"""

    targets: List[TargetReport] = field(default_factory=list)
    skipped: List[VerificationTarget] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped and all(report.ok for report in self.targets)

    @property
    def failures(self) -> List[TargetReport]:
        return [report for report in self.targets if not report.ok]

    def raise_for_status(self) -> None:
        """抛出第一个失败对应的异常"""
        for report in self.failures:
            report.failure.raise_for_status()


class VerificationService:
    """验证服务 - 极简协调器模式"""

    def __init__(self, root: Optional[Union[str, Path]] = None,
                 build_runner: Optional[BuildRunner] = None,
                 keep_going: bool = False,
                 check_remote: bool = False,
                 http_client: Optional[httpx.Client] = None):
        self.root = get_working_tree(root)
        self.build_runner = build_runner or BuildRunner(self.root)
        self.keep_going = keep_going
        self.check_remote = check_remote
        self.http_client = http_client

    def build(self, targets: Sequence[VerificationTarget]) -> None:
        """构建阶段：按顺序阻塞执行每个target的构建命令，失败抛出BuildFailed"""
        for target in targets:
            if not target.build_command:
                logger.debug(f"No build command for {target.name}, skipping build")
                continue
            self.build_runner.run(target.build_command, label=target.display_name)

    def verify(self, targets: Sequence[VerificationTarget]) -> VerificationReport:
        """验证阶段：默认遇到第一个失败的target即停止，keep_going时检查全部"""
        report = VerificationReport()
        for position, target in enumerate(targets):
            target_report = self.verify_target(target)
            report.targets.append(target_report)
            if not target_report.ok and not self.keep_going:
                report.skipped.extend(targets[position + 1:])
                break
        return report

    def run(self, targets: Sequence[VerificationTarget], skip_build: bool = False) -> VerificationReport:
        """一键运行：可选构建 + 验证"""
        if skip_build:
            logger.debug("Skipping build stage")
        else:
            self.build(targets)
        return self.verify(targets)

    def verify_target(self, target: VerificationTarget) -> TargetReport:
        """加载文档后依次执行 origin -> sources -> mappings (-> remote)"""
        report = TargetReport(target)
        try:
            doc = load_source_map(target.map_path, self.root)
        except SourceMapCheckError as e:
            # 加载失败时不再执行后续检查，避免对缺失数据解码
            logger.debug(f"Loading {target.map_path} failed: {e}")
            report.results.append(CheckResult.from_error("load", e))
            return report
        report.results.append(CheckResult.passed("load"))

        for check in self._checks_for(target):
            result = check(doc)
            report.results.append(result)
            if not result.ok:
                break
        return report

    def _checks_for(self, target: VerificationTarget) -> List[Callable[[SourceMapDocument], CheckResult]]:
        checks = [
            lambda doc: check_origin(doc, target.origin_pattern),
            lambda doc: check_sources(doc, self.root),
            lambda doc: check_mapping_sentinel(doc, target.sentinel, self.root),
        ]
        if self.check_remote:
            checks.append(lambda doc: check_remote_origin(doc, self.http_client))
        return checks
