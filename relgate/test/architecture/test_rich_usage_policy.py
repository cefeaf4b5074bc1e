from __future__ import annotations

from ._gate import require_arch_checks_enabled
from ._utils import iter_source_files, matches_prefix, parse_imports


def test_direct_rich_imports_are_limited_to_the_console() -> None:
    require_arch_checks_enabled()

    allowlist = {"output/console.py"}

    offenders: list[str] = []
    for rel, path in iter_source_files():
        if rel in allowlist:
            continue
        for item in parse_imports(path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)
