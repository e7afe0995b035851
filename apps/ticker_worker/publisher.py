# apps/ticker_worker/publisher.py

from pathlib import Path
from typing import Dict, List


def write_artifacts(files: Dict[str, str], output_dir: Path) -> List[Path]:
    """Writes each artifact under output_dir, keyed by its relative path."""
    written = []
    for relative_path, content in files.items():
        target = output_dir / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        written.append(target)
    return written


def write_log(lines: List[str], output_dir: Path, name: str = "ticker.log") -> Path:
    target = output_dir / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return target
