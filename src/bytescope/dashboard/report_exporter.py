"""
比较结果导出

支持格式:
- JSON（含导出元数据与汇总）
- CSV（合约汇总、识别出的函数、相似度三个分段）
- Markdown摘要
"""

from dataclasses import dataclass, field as dc_field
from datetime import datetime as dt, timezone
from typing import Dict, List, Optional, Any
from enum import Enum
import csv
import io
import json
import logging

from bytescope.contract.contract_model import ContractAnalysis, ContractComparison

logger = logging.getLogger(__name__)


EXPORT_VERSION = "1.0.0"


class ExportFormat(Enum):
    """导出格式"""
    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"


@dataclass
class ExportMetadata:
    """导出元数据"""
    export_time: str = dc_field(
        default_factory=lambda: dt.now(timezone.utc).isoformat()
    )
    version: str = EXPORT_VERSION
    network: str = "mainnet"
    analysis_type: str = "multiple"      # single, multiple
    total_contracts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "export_time": self.export_time,
            "version": self.version,
            "network": self.network,
            "analysis_type": self.analysis_type,
            "total_contracts": self.total_contracts,
        }


def format_bytes(size: float) -> str:
    """1536 -> 1.5KB"""
    if size < 1024:
        return f"{int(size)}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"


def _unique(values: List[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def _average_size(contracts) -> float:
    if not contracts:
        return 0.0
    return round(sum(c.size_bytes for c in contracts) / len(contracts), 2)


def _format_contract(contract: ContractAnalysis) -> Dict[str, Any]:
    data = contract.to_dict()
    data["size_formatted"] = format_bytes(contract.size_bytes)
    return data


def build_export_data(
    comparison: ContractComparison,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """组装导出数据"""
    contracts = comparison.contracts

    export_metadata = ExportMetadata(
        network=comparison.network or "mainnet",
        analysis_type="single" if len(contracts) == 1 else "multiple",
        total_contracts=len(contracts),
    ).to_dict()
    export_metadata.update(metadata or {})

    return {
        "metadata": export_metadata,
        "status": comparison.status.value,
        "summary": {
            "total_contracts": len(contracts),
            "total_similarities": len(comparison.similarities),
            "total_relationships": len(comparison.relationships),
            "average_size": _average_size(contracts),
            "standards_found": _unique([s for c in contracts for s in c.standards]),
            "security_features_found": _unique(
                [f for c in contracts for f in c.security_features]
            ),
            "proxy_contracts_count": len([c for c in contracts if c.is_proxy]),
        },
        "contracts": [_format_contract(c) for c in contracts],
        "similarities": [s.to_dict() for s in comparison.similarities],
        "relationships": [r.to_dict() for r in comparison.relationships],
        "failed_addresses": list(comparison.failed_addresses),
    }


def export_json(
    comparison: ContractComparison,
    metadata: Optional[Dict[str, Any]] = None
) -> str:
    """渲染JSON"""
    return json.dumps(build_export_data(comparison, metadata), indent=2, ensure_ascii=False)


def export_csv(comparison: ContractComparison) -> str:
    """渲染CSV（三个分段，分段之间空行）"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["Contract Analysis Summary"])
    writer.writerow([
        "Address", "Name", "Size (bytes)", "Size (formatted)", "Standards",
        "Functions Count", "Complexity Level", "Complexity Score",
        "Security Features", "Is Proxy", "Proxy Type",
    ])
    for c in comparison.contracts:
        writer.writerow([
            c.address,
            c.contract_name,
            c.size_bytes,
            format_bytes(c.size_bytes),
            ", ".join(c.standards),
            c.function_count,
            c.complexity_level.value,
            c.complexity_score,
            ", ".join(c.security_features),
            c.is_proxy,
            c.proxy_type.value if c.proxy_type else "",
        ])
    writer.writerow([])

    writer.writerow(["Detected Functions"])
    writer.writerow(["Contract Address", "Contract Name", "Selector", "Function Name", "Category"])
    for c in comparison.contracts:
        for p in c.detected_patterns:
            writer.writerow([c.address, c.contract_name, p.selector, p.name, p.category.value])
    writer.writerow([])

    writer.writerow(["Contract Similarities"])
    writer.writerow(["Contract A", "Contract B", "Similarity (%)", "Shared Functions", "Total Functions"])
    for s in comparison.similarities:
        writer.writerow([
            s.contract_a,
            s.contract_b,
            s.similarity,
            len(s.shared_functions),
            s.total_functions,
        ])

    return buffer.getvalue()


def generate_summary_report(comparison: ContractComparison) -> str:
    """Markdown摘要"""
    contracts = comparison.contracts
    standards = _unique([s for c in contracts for s in c.standards])

    lines = [
        "# Bytecode Analysis Summary Report",
        f"Generated: {dt.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "## Overview",
        f"- Total Contracts: {len(contracts)}",
        f"- Average Size: {format_bytes(_average_size(contracts))}",
        f"- Standards Found: {', '.join(standards) or 'None'}",
        f"- Proxy Contracts: {len([c for c in contracts if c.is_proxy])}",
    ]
    if comparison.failed_addresses:
        lines.append(f"- Failed Addresses: {', '.join(comparison.failed_addresses)}")
    lines.append("")

    lines.append("## Contract Details")
    for c in contracts:
        lines.extend([
            f"### {c.contract_name}",
            f"- Address: {c.address}",
            f"- Size: {format_bytes(c.size_bytes)}",
            f"- Complexity: {c.complexity_level.value} ({c.complexity_score}/100)",
            f"- Standards: {', '.join(c.standards) or 'None'}",
            f"- Functions: {c.function_count}",
            f"- Security Features: {', '.join(c.security_features) or 'None'}",
        ])
        if c.proxy_type:
            lines.append(f"- Proxy Type: {c.proxy_type.value}")
        lines.append("")

    if comparison.similarities:
        lines.append("## Contract Similarities")
        for s in comparison.similarities:
            lines.append(f"- {s.contract_a} <-> {s.contract_b}: {s.similarity:.1f}% similar")
        lines.append("")

    if comparison.relationships:
        lines.append("## Detected Relationships")
        for r in comparison.relationships:
            lines.append(f"- {r.relationship_type.value}: {r.description}")

    return "\n".join(lines)


def render(
    comparison: ContractComparison,
    format: ExportFormat = ExportFormat.JSON,
    metadata: Optional[Dict[str, Any]] = None
) -> str:
    """按格式渲染"""
    if format == ExportFormat.JSON:
        return export_json(comparison, metadata)
    elif format == ExportFormat.CSV:
        return export_csv(comparison)
    elif format == ExportFormat.MARKDOWN:
        return generate_summary_report(comparison)
    raise ValueError(f"Unsupported export format: {format}")


def default_filename(format: ExportFormat, today: Optional[dt] = None) -> str:
    """bytecode-analysis-2024-01-31.json"""
    today = today or dt.now()
    extension = "md" if format == ExportFormat.MARKDOWN else format.value
    return f"bytecode-analysis-{today.strftime('%Y-%m-%d')}.{extension}"


def export_to_file(
    comparison: ContractComparison,
    filepath: Optional[str] = None,
    format: ExportFormat = ExportFormat.JSON,
    metadata: Optional[Dict[str, Any]] = None
) -> str:
    """导出到文件，返回写入的路径"""
    filepath = filepath or default_filename(format)
    content = render(comparison, format, metadata)

    with open(filepath, "w", encoding="utf-8", newline="") as f:
        f.write(content)

    logger.info(f"Comparison exported to {filepath}")
    return filepath
