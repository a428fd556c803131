"""
Experiments: static Huffman coder, sorted-list vs heap tree construction

Runs repeated experiments over synthetic datasets and records how close the
derived codes get to the entropy bound and what each stage costs.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 128 --exp2_max_kb 512
  python experiments.py --outdir results --no_exp2 --exp3_alphabets 2,16,64,256
"""

from __future__ import annotations

import argparse
import csv
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import huffman as huff
from table_format import CodedDocument, TableRow, decode_text, format_document

PIPELINES = ("sorted", "heap")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]


# Synthetic dataset generators
# Each returns text whose characters are byte values 0-255 (latin-1)

def _sample(weights: List[float], alphabet: str, size: int, rng: random.Random) -> str:
    return "".join(rng.choices(alphabet, weights=weights, k=size))

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = "".join(chr(i) for i in range(alphabet))
    return _sample([1.0] * alphabet, chars, size, rng)

def gen_repetitive(size: int, dominant: str = "A", dom_frac: float = 0.90, seed: int = 0) -> str:
    rng = random.Random(seed)
    others = "".join(chr(i) for i in range(256) if chr(i) != dominant)
    weights = [dom_frac] + [(1.0 - dom_frac) / len(others)] * len(others)
    return _sample(weights, dominant + others, size, rng)

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = "".join(chr(i) for i in range(alphabet))
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample(weights, chars, size, rng)

def gen_english_like(size: int, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = (
        " etaoinshrdlcumwfgypbvkjxq"
        "ETAOINSHRDLCUMWFGYPBVKJXQ"
        "\n"
    )
    weights = []
    for ch in chars:
        if ch == " ":
            weights.append(13.0)
        elif ch == "\n":
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample(weights, chars, size, rng)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], str]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform16": lambda size, seed: gen_uniform(size, alphabet=16, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
}

def generate_dataset(name: str, size: int, seed: int) -> str:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        known = ", ".join(sorted(GENERATOR_REGISTRY))
        raise ValueError(f"unknown dataset generator {name!r} (known: {known})")
    return fn(size, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    size_symbols: int
    run_id: int
    pipeline: str  # "sorted" or "heap"
    unique_symbols: int

    build_tree_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    coded_bits: int
    document_chars: int
    avg_code_length: float
    entropy_bits: float
    max_code_length: int
    correctness_ok: int  # 1 or 0


def run_one(text: str, pipeline: str) -> MetricRow:
    if pipeline not in PIPELINES:
        raise ValueError(f"pipeline must be one of {PIPELINES}, got {pipeline!r}")

    entries = huff.frequency_table(text)

    t0 = now_ns()
    root = huff.build_huffman_tree(entries, use_heap=(pipeline == "heap"))
    codes = huff.generate_huffman_codes(root)
    t1 = now_ns()
    del root

    rows = [TableRow(e.symbol, e.probability, codes[e.symbol]) for e in entries]
    payload = huff.huffman_encode(text, codes)
    document = format_document(CodedDocument(rows, payload))
    t2 = now_ns()

    decoded = decode_text(document)
    t3 = now_ns()

    build_ms = ns_to_ms(t1 - t0)
    encode_ms = ns_to_ms(t2 - t1)
    decode_ms = ns_to_ms(t3 - t2)

    return MetricRow(
        exp_name="",
        dataset_name="",
        size_symbols=len(text),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(entries),
        build_tree_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        coded_bits=len(payload),
        document_chars=len(document),
        avg_code_length=huff.average_code_length(entries, codes),
        entropy_bits=huff.entropy(entries),
        max_code_length=max(len(c) for c in codes.values()),
        correctness_ok=1 if decoded == text else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


SUMMARY_METRICS = ("avg_code_length", "entropy_bits", "build_tree_ms", "encode_ms", "decode_ms", "total_ms")

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, size_symbols, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.size_symbols, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "size_symbols", "pipeline", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size, pipeline = key
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "size_symbols": size,
                "pipeline": pipeline,
                "n_runs": len(items),
            }
            for m in SUMMARY_METRICS:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            out["correctness_ok_rate"] = sum(x.correctness_ok for x in items) / len(items)
            w.writerow(out)


# Plotting

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution" and r.pipeline == "sorted"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))

    def mean_for(dataset: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset]
        return statistics.mean(vals) if vals else float("nan")

    x = list(range(len(datasets)))

    plt.figure()
    plt.plot(x, [mean_for(d, "avg_code_length") for d in datasets], marker="o", label="average code length")
    plt.plot(x, [mean_for(d, "entropy_bits") for d in datasets], marker="o", label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Experiment 1: Code Length vs Entropy by Distribution")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_code_length.png", dpi=200)
    plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.size_symbols for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.size_symbols == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        for field, label in (("encode_ms", "Encode Time (ms)"), ("decode_ms", "Decode Time (ms)")):
            plt.figure()
            for p in PIPELINES:
                plt.plot(sizes, [mean_size(s, p, field) for s in sizes], marker="o", label=p)
            plt.xlabel("Input Size (symbols)")
            plt.ylabel(label)
            plt.title(f"Experiment 2: {label} vs Size ({dist})")
            plt.legend()
            plt.tight_layout()
            plt.savefig(outdir / f"exp2_{field}_{dist}.png", dpi=200)
            plt.close()


def plot_experiment_3(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp3_alphabet_scaling"]
    if not exp_rows:
        return

    alphabets = sorted(set(r.unique_symbols for r in exp_rows))

    def mean_build(k: int, pipeline: str) -> float:
        vals = [r.build_tree_ms for r in exp_rows if r.unique_symbols == k and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    plt.figure()
    for p in PIPELINES:
        plt.plot(alphabets, [mean_build(k, p) for k in alphabets], marker="o", label=p)
    plt.xlabel("Distinct Symbols")
    plt.ylabel("Tree Build Time (ms)")
    plt.title("Experiment 3: Tree Construction vs Alphabet Size")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp3_build_time.png", dpi=200)
    plt.close()


def run_pipelines(text: str, exp_name: str, dataset_name: str, run_id: int) -> List[MetricRow]:
    out = []
    for pipeline in PIPELINES:
        row = run_one(text, pipeline)
        row.exp_name = exp_name
        row.dataset_name = dataset_name
        row.run_id = run_id
        out.append(row)
    return out


# Main

def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_exp3", action="store_true", help="Disable experiment 3 (alphabet scaling)")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=64, help="Experiment 1 fixed input size in K symbols")
    ap.add_argument("--exp1_generators", type=str, default="uniform256,zipf128,repetitive90,english_like",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in K symbols (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=256, help="Experiment 2 max size in K symbols")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,english_like",
                    help="Comma-separated dataset generator names for experiment 2")

    # Experiment 3 controls
    ap.add_argument("--exp3_alphabets", type=str, default="2,4,8,16,32,64,128,256",
                    help="Comma-separated distinct-symbol counts for experiment 3")
    ap.add_argument("--exp3_size_kb", type=int, default=16, help="Experiment 3 input size in K symbols")

    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                text = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                rows += run_pipelines(text, "exp1_distribution", gen_name, run_id)

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        sizes: List[int] = []
        s = max(1, args.exp2_min_kb) * 1024
        while s <= max(1, args.exp2_max_kb) * 1024:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size in sizes:
                for run_id in range(1, args.runs + 1):
                    text = generate_dataset(gen_name, size, args.seed + 10_000 + size + run_id)
                    rows += run_pipelines(text, "exp2_size_scaling", gen_name, run_id)

    # Experiment 3: alphabet scaling, every symbol present at least once
    if not args.no_exp3:
        size = max(1, args.exp3_size_kb) * 1024
        for k in (int(x) for x in parse_csv_list(args.exp3_alphabets)):
            if not 2 <= k <= 256:
                raise ValueError(f"alphabet size must be in 2..256, got {k}")
            for run_id in range(1, args.runs + 1):
                seen = "".join(chr(i) for i in range(k))
                text = seen + gen_zipf_like(size, alphabet=k, seed=args.seed + 200_000 + k + run_id)
                rows += run_pipelines(text, "exp3_alphabet_scaling", f"zipf{k}", run_id)

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)
        plot_experiment_3(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
