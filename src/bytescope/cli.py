#!/usr/bin/env python3
"""
bytescope 命令行

运行方式：
    bytescope analyze 0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48
    bytescope compare 0x... 0x... --export report.json
    bytescope inspect --bytecode 0x6080604052...
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bytescope.config.settings import settings
from bytescope.contract.comparator import (
    ContractComparator,
    comparison_insights,
    find_families,
)
from bytescope.contract.contract_analyzer import ContractAnalyzer, shorten_address
from bytescope.contract.contract_model import ContractAnalysis, ContractComparison
from bytescope.contract.errors import BytecodeNotFoundError, EmptyBytecodeError
from bytescope.dashboard.report_exporter import ExportFormat, export_to_file
from bytescope.fetcher.code_fetcher import TRANSPORT_ERRORS, CodeFetcher, FetchReport

console = Console()


def display_analysis(analysis: ContractAnalysis):
    """显示单合约分析结果"""
    console.print(Panel(
        f"[bold]{analysis.contract_name}[/bold]\n"
        f"地址: {analysis.address}\n"
        f"大小: {analysis.size_bytes:,} bytes | "
        f"函数: {analysis.function_count} / {analysis.total_selectors} 候选\n"
        f"复杂度: {analysis.complexity_score}/100 ({analysis.complexity_level.value})",
        title="合约分析",
        border_style="cyan"
    ))

    if analysis.detected_patterns:
        table = Table(title="识别出的函数")
        table.add_column("Selector", style="dim")
        table.add_column("Function")
        table.add_column("Category", style="cyan")
        table.add_column("Confidence", justify="right")

        for p in analysis.detected_patterns:
            table.add_row(p.selector, p.name, p.category.value, f"{p.confidence:.2f}")
        console.print(table)

    for c in analysis.standards_compliance:
        color = "green" if c.compliance_percent == 100 else "yellow"
        line = f"[{color}]{c.standard}: {c.compliance_percent}%[/{color}]"
        if c.missing_functions:
            line += f" [dim]缺少: {', '.join(c.missing_functions)}[/dim]"
        console.print(line)

    if analysis.proxy_type:
        console.print(f"[yellow]代理: {analysis.proxy_type.value}[/yellow]")
    if analysis.security_features:
        console.print(f"[green]安全特性: {', '.join(analysis.security_features)}[/green]")
    if analysis.gas_optimization_features:
        console.print(f"[dim]Gas优化: {', '.join(analysis.gas_optimization_features)}[/dim]")
    if analysis.opcode_flags:
        console.print(f"[red]敏感操作码: {', '.join(analysis.opcode_flags)}[/red]")


def display_comparison(comparison: ContractComparison, family_threshold: float):
    """显示多合约比较结果"""
    table = Table(title="合约相似度")
    table.add_column("Contract A")
    table.add_column("Contract B")
    table.add_column("Similarity", justify="right")
    table.add_column("Shared", justify="right")

    for s in comparison.similarities:
        table.add_row(
            shorten_address(s.contract_a),
            shorten_address(s.contract_b),
            f"{s.similarity:.2f}%",
            str(len(s.shared_functions)),
        )
    console.print(table)

    for rel in comparison.relationships:
        console.print(
            f"[magenta]{rel.relationship_type.value}[/magenta] "
            f"({rel.confidence:.2f}): {rel.description}"
        )

    for i, family in enumerate(find_families(comparison, family_threshold), 1):
        names = ", ".join(c.contract_name for c in family)
        console.print(f"[cyan]家族 {i}:[/cyan] {names}")

    insights = comparison_insights(comparison)
    console.print(
        f"[dim]平均相似度 {insights['avg_similarity']}% | "
        f"最高 {insights['max_similarity']}% | "
        f"代理合约 {insights['proxy_count']} 个[/dim]"
    )


def run_analyze(args) -> int:
    fetcher = CodeFetcher(rpc_url=args.rpc)

    try:
        bytecode = fetcher.get_code(args.address, args.block)
    except (BytecodeNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        return 1
    except TRANSPORT_ERRORS as e:
        console.print(f"[red]RPC请求失败: {e}[/red]")
        return 1

    analysis = ContractAnalyzer().analyze(args.address, bytecode, args.name)
    display_analysis(analysis)
    return 0


def resolve_network(fetcher: CodeFetcher, network: Optional[str], report: FetchReport) -> Optional[str]:
    """未指定网络时按链ID识别；没有任何成功请求时不再访问RPC"""
    if network or not report.bytecodes:
        return network
    try:
        return fetcher.network_name()
    except TRANSPORT_ERRORS as e:
        console.print(f"[yellow]无法识别网络: {e}[/yellow]")
        return None


def run_compare(args) -> int:
    fetcher = CodeFetcher(rpc_url=args.rpc)
    report = fetcher.fetch_many(args.addresses, args.block)

    for address, reason in report.failures.items():
        console.print(f"[red]✗ {address}: {reason}[/red]")

    comparator = ContractComparator(similar_threshold=settings.similar_relationship_threshold)
    comparison = comparator.compare_bytecodes(
        contracts=[{"address": a} for a in args.addresses],
        bytecodes=report.bytecodes,
        failed_addresses=report.failed_addresses,
        network=resolve_network(fetcher, args.network, report),
    )

    if not comparison.is_comparable:
        console.print("[red]可用合约少于2个，无法比较[/red]")
        return 1

    for analysis in comparison.contracts:
        console.print(analysis.summary(), style="dim")
        console.print()

    display_comparison(comparison, args.threshold)

    if args.export:
        path = export_to_file(comparison, args.export, ExportFormat(args.format))
        console.print(f"[green]✓ 已导出: {path}[/green]")

    return 0


def run_inspect(args) -> int:
    try:
        analysis = ContractAnalyzer().analyze(args.address, args.bytecode, args.name)
    except EmptyBytecodeError as e:
        console.print(f"[red]{e}[/red]")
        return 1

    display_analysis(analysis)
    return 0


def block_identifier(value: str):
    """数字字符串转为区块号，标签原样返回"""
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bytescope",
        description="EVM 字节码分析与多合约比较"
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="日志级别"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="分析链上合约")
    analyze.add_argument("address", help="合约地址")
    analyze.add_argument("--name", help="展示名称")
    analyze.add_argument("--rpc", help="RPC端点URL")
    analyze.add_argument("--block", type=block_identifier, default=None, help="区块号或标签")
    analyze.set_defaults(handler=run_analyze)

    compare = subparsers.add_parser("compare", help="比较多个链上合约")
    compare.add_argument("addresses", nargs="+", metavar="ADDRESS", help="合约地址")
    compare.add_argument(
        "--threshold",
        type=float,
        default=settings.similarity_threshold,
        help="家族聚类相似度阈值"
    )
    compare.add_argument("--export", metavar="FILE", help="导出文件路径")
    compare.add_argument(
        "--format",
        choices=[f.value for f in ExportFormat],
        default=ExportFormat.JSON.value,
        help="导出格式"
    )
    compare.add_argument("--network", help="网络名称（仅展示，默认从RPC读取链ID）")
    compare.add_argument("--rpc", help="RPC端点URL")
    compare.add_argument("--block", type=block_identifier, default=None, help="区块号或标签")
    compare.set_defaults(handler=run_compare)

    inspect = subparsers.add_parser("inspect", help="离线分析字节码")
    inspect.add_argument("--bytecode", required=True, help="0x开头的十六进制字节码")
    inspect.add_argument("--address", default="0x" + "0" * 40, help="展示用地址")
    inspect.add_argument("--name", help="展示名称")
    inspect.set_defaults(handler=run_inspect)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
