"""Kernel taint bitmask decoding."""

from __future__ import annotations

from pathlib import Path

from kernel_watchdog.models import TaintStats

# Bit index -> flag name, in kernel order.
TAINT_FLAGS: tuple[str, ...] = (
    "Proprietary(P)",
    "ForceLoad(F)",
    "SMP(S)",
    "ForceUnload(R)",
    "MCE(M)",
    "BadPage(B)",
    "UserTaint(U)",
    "OOPS(D)",
    "ACPI(A)",
    "Warning(W)",
    "Staging(C)",
    "Workaround(I)",
    "ExtMod(O)",
    "Unsigned(E)",
    "SoftLockup(L)",
    "LivePatch(K)",
    "Aux(X)",
    "Randstruct(T)",
)


def decode_taint(mask: int) -> tuple[str, ...]:
    if mask <= 0:
        return ()
    return tuple(name for bit, name in enumerate(TAINT_FLAGS) if mask & (1 << bit))


def parse_taint(text: str) -> TaintStats:
    try:
        mask = int(text.strip())
    except ValueError:
        return TaintStats()
    return TaintStats(mask=mask, flags=decode_taint(mask))


def collect_taint_stats(proc_root: Path = Path("/proc")) -> TaintStats:
    return parse_taint((proc_root / "sys" / "kernel" / "tainted").read_text(encoding="utf-8"))
