from __future__ import annotations
import os, sys, traceback
from datetime import datetime, timedelta
from pathlib import Path

from csvwatch.errors import ConfigError
from csvwatch.schemas import WatchConfig
from csvwatch.utils import load_yaml

# ---------- Paths ----------
ROOT = Path(__file__).resolve().parent
CONFIG_PATH = ROOT / "config.yaml"

def human(n: float) -> str:
    return f"{n:,.0f}"

def count_dir(p: Path, pattern: str = "*") -> int:
    if not p.exists():
        return 0
    return sum(1 for f in p.glob(pattern) if not f.is_dir())

def recent_files_per_minute(p: Path, minutes: int = 5, pattern: str = "*") -> float:
    if not p.exists():
        return 0.0
    cutoff = datetime.now() - timedelta(minutes=minutes)
    hits = 0
    for f in p.glob(pattern):
        try:
            ts = datetime.fromtimestamp(f.stat().st_mtime)
        except OSError:
            # removed between glob and stat
            continue
        if ts >= cutoff:
            hits += 1
    return hits / max(minutes, 1)

def tail(path: Path, lines: int = 20) -> list[str]:
    if not path.exists():
        return ["<log file not found>"]
    try:
        with open(path, "rb") as f:
            f.seek(0, os.SEEK_END)
            size = f.tell()
            block = 1024
            data = b""
            while size > 0 and data.count(b"\n") <= lines:
                step = min(block, size)
                f.seek(size - step)
                data = f.read(step) + data
                size -= step
        txt = data.decode("utf-8", errors="replace").splitlines()[-lines:]
        return txt if txt else ["<empty>"]
    except OSError:
        return [traceback.format_exc()]

def main(cfg_path: Path = CONFIG_PATH) -> int:
    try:
        cfg = WatchConfig.from_dict(load_yaml(str(cfg_path)))
    except ConfigError as e:
        print(f"health: {e}", file=sys.stderr)
        return 2
    # relative paths resolve against the working directory, as in csvwatch.watcher.run
    watch_dir = Path(cfg.watch_path).resolve()
    log_path = Path(cfg.log_dir).resolve() / "csvwatch.log"

    print("="*70)
    print(f"{cfg.name} - Health Report")
    print(f"As of: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("="*70)

    total = count_dir(watch_dir)
    csvs = count_dir(watch_dir, "*.csv")
    rpm = recent_files_per_minute(watch_dir, minutes=5)

    print(f"\nWatched folder: {watch_dir}" + ("" if watch_dir.exists() else "  (missing)"))
    print(f"  Poll interval:        {cfg.watch_delay_ms} ms")
    print(f"  Files present:        {human(total)}")
    print(f"  .csv files:           {human(csvs)}")
    print(f"  Not importable:       {human(total - csvs)}")
    print(f"  Arrival rate (5m):    {rpm:.2f} files/min")

    print(f"\nLog tail: {log_path}")
    for line in tail(log_path, lines=20):
        print("  " + line)

    print("\nDone.\n")
    return 0

if __name__ == "__main__":
    sys.exit(main(Path(sys.argv[1]).resolve() if len(sys.argv) > 1 else CONFIG_PATH))
