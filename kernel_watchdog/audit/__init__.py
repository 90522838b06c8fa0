"""Kernel log ingestion and classification."""

from .auditor import KernelAuditor
from .classify import RULES, ClassificationRule, classify, severity_from_priority
from .kmsg import KmsgReader, ReaderState, parse_record
from .sources import CommandLogSource, classify_lines, default_sources

__all__ = [
    "RULES",
    "ClassificationRule",
    "CommandLogSource",
    "KernelAuditor",
    "KmsgReader",
    "ReaderState",
    "classify",
    "classify_lines",
    "default_sources",
    "parse_record",
    "severity_from_priority",
]
