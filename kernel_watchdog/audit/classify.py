"""Ordered keyword rules mapping a kernel message to (subsystem, severity)."""

from __future__ import annotations

from dataclasses import dataclass

from kernel_watchdog.models import Severity, Subsystem

_FAILURE = ("error", "fail", "timeout")


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    """Matches when a keyword hits and, if triggers are given, a trigger hits too.

    Keywords and triggers are lowercase; matching is substring membership on
    the lowercased message.
    """

    name: str
    keywords: tuple[str, ...]
    triggers: tuple[str, ...]
    subsystem: Subsystem
    severity: Severity

    def matches(self, lowered: str) -> bool:
        if not any(keyword in lowered for keyword in self.keywords):
            return False
        return not self.triggers or any(trigger in lowered for trigger in self.triggers)


RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        "gpu-fault",
        ("gpu", "drm", "nvidia", "amdgpu", "radeon", "i915", "nouveau"),
        ("error", "fail", "hang", "timeout", "fault"),
        Subsystem.GPU,
        Severity.CRITICAL,
    ),
    ClassificationRule("kernel-panic", ("kernel panic",), (), Subsystem.KERNEL, Severity.EMERGENCY),
    ClassificationRule(
        "kernel-oops",
        ("bug:", "warning:", "rip:", "call trace:", "oops:", "general protection"),
        (),
        Subsystem.KERNEL,
        Severity.CRITICAL,
    ),
    ClassificationRule(
        "out-of-memory",
        ("out of memory", "oom-kill", "oom_reaper"),
        (),
        Subsystem.MEMORY,
        Severity.CRITICAL,
    ),
    ClassificationRule("lockup", ("soft lockup", "hard lockup"), (), Subsystem.KERNEL, Severity.CRITICAL),
    ClassificationRule(
        "storage-fault",
        ("sd", "nvme", "ata", "i/o error", "ext4-fs", "btrfs", "xfs"),
        _FAILURE,
        Subsystem.STORAGE,
        Severity.CRITICAL,
    ),
    ClassificationRule(
        "usb-fault",
        ("usb",),
        ("error", "fail", "disconnect", "reset"),
        Subsystem.USB,
        Severity.ERROR,
    ),
    ClassificationRule(
        "network-fault",
        ("eth", "wlan", "enp", "wlp", "iwlwifi", "ath"),
        ("error", "fail", "timeout", "reset"),
        Subsystem.NETWORK,
        Severity.ERROR,
    ),
    ClassificationRule(
        "thermal-critical",
        ("thermal",),
        ("critical", "emergency"),
        Subsystem.THERMAL,
        Severity.CRITICAL,
    ),
)


def severity_from_priority(level: int) -> Severity:
    """Syslog level (0=emerg .. 7=debug) to the fallback severity."""

    if level <= 2:
        return Severity.CRITICAL
    if level <= 3:
        return Severity.ERROR
    if level <= 4:
        return Severity.WARNING
    return Severity.INFO


def match_rule(message: str, rules: tuple[ClassificationRule, ...] = RULES) -> ClassificationRule | None:
    lowered = message.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule
    return None


def classify(message: str, priority: int | None = None) -> tuple[Subsystem, Severity] | None:
    """First matching rule wins; otherwise fall back on the priority.

    Without a priority an unmatched message returns ``None``: there is no
    reliable severity for it.
    """

    rule = match_rule(message)
    if rule is not None:
        return rule.subsystem, rule.severity
    if priority is None:
        return None
    return Subsystem.KERNEL, severity_from_priority(priority)
