"""
report.py - Human-readable formatting and result files
"""

import json
import os
import time


def format_duration(ms):
    """Short duration string: 12.3s, 4.5m, 1.2h"""
    seconds = ms / 1000
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3600:.1f}h"


def format_rate(rate):
    if rate < 1000:
        return f"{rate:.0f}/s"
    return f"{rate / 1000:.1f}k/s"


def _seed_value_text(value):
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


def describe_seed(spec):
    """One-line description of a seed spec"""
    if spec.kind == "range":
        text = f"{spec.label}: {spec.min}..{spec.max}"
    else:
        text = f"{spec.label}: {_seed_value_text(spec.value)}"
    if spec.description:
        text += f" ({spec.description})"
    return text


def default_output_path(output_dir, constraints):
    """Build output_dir/pda_<pattern>_<timestamp>.json"""
    pat = []
    for name, value in constraints.specified().items():
        if isinstance(value, str):
            pat.append(f"{name}_{value}")
    pat_str = "_".join(pat) or "any"
    return os.path.join(output_dir, f"pda_{pat_str}_{int(time.time())}.json")


def save_results(out_path, program_id, seeds, constraints, results, reason, attempts, elapsed_sec):
    """Write a search and its results as JSON"""
    out_dir = os.path.dirname(out_path)
    if out_dir and not os.path.exists(out_dir):
        os.makedirs(out_dir)

    data = {
        "program_id": program_id,
        "seeds": [describe_seed(spec) for spec in seeds],
        "constraints": constraints.specified(),
        "reason": reason,
        "attempts": attempts,
        "elapsed_sec": elapsed_sec,
        "attempts_per_second": attempts / elapsed_sec if elapsed_sec > 0 else 0,
        "results": [r.to_dict() for r in results],
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
    }

    with open(out_path, "w") as f:
        json.dump(data, f, indent=2)
    return out_path


def text_report(program_id, seeds, constraints, results):
    """Plain-text report listing the seed setup, constraints and every result"""
    lines = [
        "PDA Brute Force Results",
        "=======================",
        f"Program ID: {program_id}",
        f"Search completed: {time.strftime('%Y-%m-%dT%H:%M:%S')}",
        f"Results found: {len(results)}",
        "",
        "Seeds Configuration:",
    ]
    lines += [f"{i}. {describe_seed(spec)}" for i, spec in enumerate(seeds, 1)]
    lines += ["", "Constraints:"]
    lines += [f"{name}: {value}" for name, value in constraints.specified().items()]
    lines += ["", "Results:", "========"]
    for i, r in enumerate(results, 1):
        lines += [
            "",
            f"{i}. Address: {r.address}",
            f"   Bump: {r.bump}",
            f"   Attempts: {r.attempts}",
            f"   Time: {format_duration(r.elapsed_ms)}",
            f"   Matched: {', '.join(r.matched_constraints)}",
            f"   Seeds Used: [{', '.join(_seed_value_text(v) for v in r.seed_values)}]",
        ]
    return "\n".join(lines) + "\n"
